"""Attendance service - settings, marking, HR edits, locking and summaries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms_engine.calculators.attendance import (
    classify,
    count_statuses,
    is_weekend,
    month_days,
    parse_status,
    summarize_month,
    to_utc_naive,
)
from hrms_engine.calculators.types import (
    AttendanceSettings,
    AttendanceStatus,
    MonthlySummary,
    StatusCounts,
    to_amount,
)
from hrms_engine.config import get_settings
from hrms_engine.models import AttendanceLog, AttendanceSettingsRecord, Employee, Holiday
from hrms_engine.services.access import Actor
from hrms_engine.services.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MAX_HOURS = Decimal("24")


def settings_from_record(record: AttendanceSettingsRecord) -> AttendanceSettings:
    return AttendanceSettings(
        standard_work_hours=Decimal(record.standard_work_hours),
        half_day_threshold=Decimal(record.half_day_threshold),
        allow_self_clock_in=record.allow_self_clock_in,
    )


def validate_thresholds(standard_work_hours: Decimal, half_day_threshold: Decimal) -> None:
    """Enforce 0 < half_day_threshold <= standard_work_hours <= 24."""
    if not Decimal("0") < standard_work_hours <= MAX_HOURS:
        raise ValidationError("Standard work hours must be between 0 and 24")
    if not Decimal("0") < half_day_threshold <= MAX_HOURS:
        raise ValidationError("Half day threshold must be between 0 and 24")
    if half_day_threshold > standard_work_hours:
        raise ValidationError("Half day threshold cannot be greater than standard work hours")


def validate_times(check_in: datetime | None, check_out: datetime | None) -> None:
    """Reject a pair whose check-out does not fall after its check-in."""
    if check_in and check_out and check_out <= check_in:
        raise ValidationError("Check-out must be after check-in")


def require_status(value: AttendanceStatus | str | None) -> AttendanceStatus | None:
    """Parse an optional status override, rejecting unknown values."""
    if not value:
        return None
    status = parse_status(value)
    if status is None:
        raise ValidationError(f"Unknown attendance status '{value}'")
    return status


@dataclass
class AttendanceFilters:
    employee_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: str | None = None


class AttendanceService:
    """Service for attendance records.

    Operations:
    - get_settings / update_settings: thresholds singleton
    - mark: clock-in/out or HR mark, upserted per employee and day
    - update: HR edit of an existing record, requires an edit reason
    - lock_month: freeze a month's records against edits
    - list_logs, monthly_summary, status_counts: read models
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def _get_settings_record(self) -> AttendanceSettingsRecord:
        result = await self.session.execute(select(AttendanceSettingsRecord).limit(1))
        record = result.scalar_one_or_none()
        if record is None:
            defaults = get_settings()
            record = AttendanceSettingsRecord(
                standard_work_hours=defaults.default_standard_work_hours,
                half_day_threshold=defaults.default_half_day_threshold,
                allow_self_clock_in=True,
            )
            self.session.add(record)
            await self.session.flush()
        return record

    async def get_settings(self) -> AttendanceSettings:
        """Return the thresholds, creating the default row if missing."""
        return settings_from_record(await self._get_settings_record())

    async def update_settings(
        self,
        actor: Actor,
        standard_work_hours: Any = None,
        half_day_threshold: Any = None,
        allow_self_clock_in: bool | None = None,
    ) -> AttendanceSettings:
        """Update thresholds; unspecified fields keep their stored value."""
        actor.require_privileged("update attendance settings")
        record = await self._get_settings_record()

        new_standard = (
            to_amount(standard_work_hours)
            if standard_work_hours is not None
            else Decimal(record.standard_work_hours)
        )
        new_half_day = (
            to_amount(half_day_threshold)
            if half_day_threshold is not None
            else Decimal(record.half_day_threshold)
        )
        validate_thresholds(new_standard, new_half_day)

        record.standard_work_hours = new_standard
        record.half_day_threshold = new_half_day
        if allow_self_clock_in is not None:
            record.allow_self_clock_in = allow_self_clock_in
        await self.session.flush()

        logger.info(
            "Attendance settings updated by %s: standard=%s half_day=%s self_clock_in=%s",
            actor.user_id,
            new_standard,
            new_half_day,
            record.allow_self_clock_in,
        )
        return settings_from_record(record)

    # ------------------------------------------------------------------
    # Marking and editing
    # ------------------------------------------------------------------

    async def get_log(self, attendance_log_id: UUID) -> AttendanceLog:
        log = await self.session.get(AttendanceLog, attendance_log_id)
        if log is None:
            raise NotFoundError("Attendance record not found")
        return log

    async def find_log(self, employee_id: UUID, day: date) -> AttendanceLog | None:
        result = await self.session.execute(
            select(AttendanceLog).where(
                AttendanceLog.employee_id == employee_id,
                AttendanceLog.date == day,
            )
        )
        return result.scalar_one_or_none()

    async def mark(
        self,
        actor: Actor,
        employee_id: UUID | None = None,
        day: date | None = None,
        check_in: datetime | None = None,
        check_out: datetime | None = None,
        status: AttendanceStatus | str | None = None,
        notes: str | None = None,
    ) -> AttendanceLog:
        """Create or amend the attendance record for one employee and day.

        Status precedence: explicit status, then the classifier, then
        "present" for a clock-in without clock-out, then "weekend" on
        weekends, otherwise "absent".
        """
        settings = await self.get_settings()

        if actor.is_privileged:
            target_id = employee_id or actor.user_id
        else:
            if employee_id is not None and employee_id != actor.user_id:
                raise PermissionDeniedError("Employees can only mark their own attendance")
            if not settings.allow_self_clock_in:
                raise PermissionDeniedError("Self clock-in is disabled")
            target_id = actor.user_id

        attendance_date = day or date.today()
        override = require_status(status)
        check_in = to_utc_naive(check_in)
        check_out = to_utc_naive(check_out)
        validate_times(check_in, check_out)

        log = await self.find_log(target_id, attendance_date)
        if log is not None and log.is_locked:
            raise ConflictError("Attendance is locked for this date")

        actual_in = check_in or (log.check_in if log else None)
        actual_out = check_out or (log.check_out if log else None)
        validate_times(actual_in, actual_out)
        result = classify(actual_in, actual_out, settings, override=override)

        resolved = result.status
        if resolved is None:
            if check_in and not check_out:
                resolved = AttendanceStatus.PRESENT
            elif is_weekend(attendance_date):
                resolved = AttendanceStatus.WEEKEND
            else:
                resolved = AttendanceStatus.ABSENT

        if log is None:
            log = AttendanceLog(employee_id=target_id, date=attendance_date)
            self.session.add(log)
        log.check_in = actual_in
        log.check_out = actual_out
        log.status = resolved.value
        log.work_hours = result.hours
        if notes is not None:
            log.notes = notes
        await self.session.flush()

        logger.info(
            "Attendance marked for %s on %s: status=%s hours=%s",
            target_id,
            attendance_date,
            log.status,
            log.work_hours,
        )
        return log

    async def update(
        self,
        actor: Actor,
        attendance_log_id: UUID,
        edit_reason: str | None,
        check_in: datetime | None = None,
        check_out: datetime | None = None,
        status: AttendanceStatus | str | None = None,
        notes: str | None = None,
        day: date | None = None,
    ) -> AttendanceLog:
        """HR edit of an existing record.

        Hours are re-derived from the merged timestamps. Status comes from
        the override, else the classifier, else stays as stored.
        """
        actor.require_privileged("update attendance records")
        if not edit_reason or not edit_reason.strip():
            raise ValidationError("An edit reason is required")

        override = require_status(status)
        log = await self.get_log(attendance_log_id)
        if log.is_locked:
            raise ConflictError("Attendance is locked and cannot be edited")
        if day is not None and day != log.date:
            occupant = await self.find_log(log.employee_id, day)
            if occupant is not None and occupant.is_locked:
                raise ConflictError("Attendance is locked for this date")
            if occupant is not None:
                raise ConflictError("Attendance already exists for this date")

        settings = await self.get_settings()
        new_in = to_utc_naive(check_in) or log.check_in
        new_out = to_utc_naive(check_out) or log.check_out
        validate_times(new_in, new_out)

        result = classify(new_in, new_out, settings, override=override)

        log.check_in = new_in
        log.check_out = new_out
        if result.hours is not None:
            log.work_hours = result.hours
        if result.status is not None:
            log.status = result.status.value
        if notes is not None:
            log.notes = notes
        if day is not None:
            log.date = day
        log.edited_by = actor.user_id
        log.edit_reason = edit_reason.strip()
        await self.session.flush()

        logger.info(
            "Attendance %s edited by %s: status=%s reason=%r",
            log.attendance_log_id,
            actor.user_id,
            log.status,
            log.edit_reason,
        )
        return log

    async def lock_month(self, actor: Actor, month: int, year: int) -> int:
        """Lock every record of a month. Returns the number of rows locked."""
        actor.require_privileged("lock attendance")
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12")
        days = month_days(year, month)
        result = await self.session.execute(
            select(AttendanceLog).where(
                AttendanceLog.date.between(days[0], days[-1]),
                AttendanceLog.is_locked.is_(False),
            )
        )
        logs = list(result.scalars().all())
        for log in logs:
            log.is_locked = True
        await self.session.flush()
        logger.info("Attendance locked for %s/%s (%s rows)", month, year, len(logs))
        return len(logs)

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    async def list_logs(
        self, actor: Actor, filters: AttendanceFilters | None = None
    ) -> list[AttendanceLog]:
        """Logs newest first; employees only ever see their own."""
        filters = filters or AttendanceFilters()
        query = (
            select(AttendanceLog)
            .join(Employee, AttendanceLog.employee_id == Employee.employee_id)
            .where(Employee.status != "terminated")
        )

        if not actor.is_privileged:
            query = query.where(AttendanceLog.employee_id == actor.user_id)
        elif filters.employee_id:
            query = query.where(AttendanceLog.employee_id == filters.employee_id)

        if filters.start_date and filters.end_date:
            query = query.where(AttendanceLog.date.between(filters.start_date, filters.end_date))
        if filters.status:
            query = query.where(AttendanceLog.status == filters.status)

        result = await self.session.execute(query.order_by(AttendanceLog.date.desc()))
        return list(result.scalars().all())

    def _target_employee(self, actor: Actor, employee_id: UUID | None) -> UUID:
        if actor.is_privileged and employee_id is not None:
            return employee_id
        return actor.user_id

    async def _month_logs(self, employee_id: UUID, month: int, year: int) -> list[AttendanceLog]:
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12")
        days = month_days(year, month)
        result = await self.session.execute(
            select(AttendanceLog).where(
                AttendanceLog.employee_id == employee_id,
                AttendanceLog.date.between(days[0], days[-1]),
            )
        )
        return list(result.scalars().all())

    async def month_holidays(self, month: int, year: int) -> list[date]:
        days = month_days(year, month)
        result = await self.session.execute(
            select(Holiday.date).where(Holiday.date.between(days[0], days[-1]))
        )
        return list(result.scalars().all())

    async def monthly_summary(
        self,
        actor: Actor,
        month: int,
        year: int,
        employee_id: UUID | None = None,
        today: date | None = None,
    ) -> MonthlySummary:
        """Calendar view counts for a month with default-absent policy."""
        target = self._target_employee(actor, employee_id)
        logs = await self._month_logs(target, month, year)
        holidays = await self.month_holidays(month, year)
        records = {log.date: log.status for log in logs}
        return summarize_month(year, month, records, holidays, today or date.today())

    async def status_counts(
        self,
        actor: Actor,
        month: int,
        year: int,
        employee_id: UUID | None = None,
    ) -> StatusCounts:
        """Raw per-status counts of stored logs for a month."""
        target = self._target_employee(actor, employee_id)
        logs = await self._month_logs(target, month, year)
        return count_statuses((log.status, log.work_hours) for log in logs)
