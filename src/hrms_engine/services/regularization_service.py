"""Regularization service - employee correction requests and HR decisions."""

from __future__ import annotations

import logging
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms_engine.calculators.attendance import classify, to_utc_naive
from hrms_engine.calculators.types import AttendanceStatus
from hrms_engine.models import AttendanceLog, RegularizationRequest
from hrms_engine.services.access import Actor
from hrms_engine.services.attendance_service import AttendanceService, validate_times
from hrms_engine.services.errors import ConflictError, NotFoundError, ValidationError
from hrms_engine.services.state_machine import (
    RegularizationStateMachine,
    RegularizationStatus,
)

logger = logging.getLogger(__name__)

REQUEST_TYPES = {"check_in", "check_out", "both", "status_change"}
REQUESTABLE_STATUSES = {
    AttendanceStatus.PRESENT.value,
    AttendanceStatus.HALF_DAY.value,
    AttendanceStatus.ABSENT.value,
}


class RegularizationService:
    """Service for regularization requests.

    A request is created pending and decided once. Approval writes the
    proposed values onto the attendance record for that day.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.attendance = AttendanceService(session)

    async def submit(
        self,
        actor: Actor,
        attendance_date: date,
        request_type: str,
        reason: str | None,
        new_check_in: datetime | None = None,
        new_check_out: datetime | None = None,
        new_status: str | None = None,
    ) -> RegularizationRequest:
        """File a request for the calling employee."""
        if not reason or not reason.strip():
            raise ValidationError("A reason is required")
        if request_type not in REQUEST_TYPES:
            raise ValidationError(f"Unknown regularization type '{request_type}'")
        if request_type in ("check_in", "both") and new_check_in is None:
            raise ValidationError("A new check-in time is required")
        if request_type in ("check_out", "both") and new_check_out is None:
            raise ValidationError("A new check-out time is required")
        if request_type == "status_change" and new_status not in REQUESTABLE_STATUSES:
            raise ValidationError("Status must be one of present, half_day, absent")

        new_check_in = to_utc_naive(new_check_in)
        new_check_out = to_utc_naive(new_check_out)
        validate_times(new_check_in, new_check_out)

        request = RegularizationRequest(
            employee_id=actor.user_id,
            attendance_date=attendance_date,
            request_type=request_type,
            new_check_in=new_check_in,
            new_check_out=new_check_out,
            new_status=new_status if request_type == "status_change" else None,
            reason=reason.strip(),
            status=RegularizationStatus.PENDING.value,
        )
        self.session.add(request)
        await self.session.flush()
        logger.info(
            "Regularization %s submitted by %s for %s",
            request_type,
            actor.user_id,
            attendance_date,
        )
        return request

    async def list_mine(self, actor: Actor) -> list[RegularizationRequest]:
        result = await self.session.execute(
            select(RegularizationRequest)
            .where(RegularizationRequest.employee_id == actor.user_id)
            .order_by(RegularizationRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_all(
        self, actor: Actor, status: str | None = None
    ) -> list[RegularizationRequest]:
        actor.require_privileged("view all regularization requests")
        query = select(RegularizationRequest)
        if status:
            query = query.where(RegularizationRequest.status == status)
        result = await self.session.execute(
            query.order_by(RegularizationRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def process(
        self,
        actor: Actor,
        request_id: UUID,
        status: str,
        remarks: str | None = None,
    ) -> RegularizationRequest:
        """Approve or reject a pending request."""
        actor.require_privileged("process regularization requests")

        request = await self.session.get(RegularizationRequest, request_id)
        if request is None:
            raise NotFoundError("Request not found")
        if request.status != RegularizationStatus.PENDING:
            raise ConflictError("Request already processed")
        RegularizationStateMachine.validate_transition(request.status, status)
        if status == RegularizationStatus.REJECTED and not (remarks and remarks.strip()):
            raise ValidationError("A rejection reason is required")
        log = None
        if status == RegularizationStatus.APPROVED:
            log = await self.attendance.find_log(request.employee_id, request.attendance_date)
            if log is not None and log.is_locked:
                raise ConflictError("Attendance is locked for this date")
            validate_times(*self._merged_times(request, log))

        request.status = RegularizationStatus(status).value
        request.remarks = remarks
        request.approved_by = actor.user_id

        if request.status == RegularizationStatus.APPROVED:
            await self._apply(actor, request, log)

        await self.session.flush()
        logger.info(
            "Regularization %s %s by %s",
            request.regularization_request_id,
            request.status,
            actor.user_id,
        )
        return request

    @staticmethod
    def _merged_times(
        request: RegularizationRequest, log: AttendanceLog | None
    ) -> tuple[datetime | None, datetime | None]:
        """The (check_in, check_out) the record will hold once approved."""
        check_in = log.check_in if log else None
        check_out = log.check_out if log else None
        if request.request_type in ("check_in", "both"):
            check_in = request.new_check_in
        if request.request_type in ("check_out", "both"):
            check_out = request.new_check_out
        return check_in, check_out

    async def _apply(
        self, actor: Actor, request: RegularizationRequest, log: AttendanceLog | None
    ) -> AttendanceLog:
        if log is None:
            log = AttendanceLog(
                employee_id=request.employee_id,
                date=request.attendance_date,
                status=AttendanceStatus.ABSENT.value,
            )
            self.session.add(log)

        log.check_in, log.check_out = self._merged_times(request, log)

        settings = await self.attendance.get_settings()
        override = request.new_status if request.request_type == "status_change" else None
        result = classify(log.check_in, log.check_out, settings, override=override)
        if result.hours is not None:
            log.work_hours = result.hours
        if result.status is not None:
            log.status = result.status.value

        log.edited_by = actor.user_id
        log.edit_reason = f"Regularization: {request.reason}"
        return log
