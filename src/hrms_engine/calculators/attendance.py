"""Attendance classification and monthly calendar aggregation.

Every function here is pure: settings, holidays and "today" are passed in
explicitly so the API preview and the persisting services share one rule.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from hrms_engine.calculators.types import (
    ZERO,
    AttendanceSettings,
    AttendanceStatus,
    Classification,
    DayRecords,
    MonthlySummary,
    StatusCounts,
    to_amount,
)

HOURS_PRECISION = Decimal("0.01")
SECONDS_PER_HOUR = Decimal(3600)
HALF = Decimal("0.5")
ONE = Decimal("1")


def to_utc_naive(value: datetime | None) -> datetime | None:
    """Normalize a timestamp to naive UTC, the storage convention."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_status(value: AttendanceStatus | str | None) -> AttendanceStatus | None:
    """Return the matching status, or None for an empty or unknown value."""
    if not value:
        return None
    try:
        return AttendanceStatus(value)
    except ValueError:
        return None


def calculate_work_hours(
    check_in: datetime | None, check_out: datetime | None
) -> Decimal | None:
    """Return hours between check-in and check-out, rounded half-up to 0.01.

    Returns None when either timestamp is missing or check-out does not
    fall strictly after check-in. Timezone-aware values are compared as
    naive UTC, so a mixed pair never raises.
    """
    if check_in is None or check_out is None:
        return None
    check_in = to_utc_naive(check_in)
    check_out = to_utc_naive(check_out)
    if check_out <= check_in:
        return None
    seconds = Decimal(str((check_out - check_in).total_seconds()))
    return (seconds / SECONDS_PER_HOUR).quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)


def derive_status(hours: Decimal, settings: AttendanceSettings) -> AttendanceStatus:
    """Map worked hours onto absent / half_day / present."""
    if hours < settings.half_day_threshold:
        return AttendanceStatus.ABSENT
    if hours < settings.standard_work_hours:
        return AttendanceStatus.HALF_DAY
    return AttendanceStatus.PRESENT


def classify(
    check_in: datetime | None,
    check_out: datetime | None,
    settings: AttendanceSettings,
    override: AttendanceStatus | str | None = None,
) -> Classification:
    """Classify one attendance day.

    An override replaces the computed status only; hours always come from
    the timestamps. An override that is not an AttendanceStatus value is
    ignored; the services reject such input before classifying.
    """
    hours = calculate_work_hours(check_in, check_out)
    status: AttendanceStatus | None = None
    if hours is not None:
        status = derive_status(hours, settings)
    forced = parse_status(override)
    if forced is not None:
        status = forced
    return Classification(hours=hours, status=status)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def month_days(year: int, month: int) -> list[date]:
    """All calendar days of a month."""
    first = date(year, month, 1)
    count = calendar.monthrange(year, month)[1]
    return [first + timedelta(days=i) for i in range(count)]


def summarize_month(
    year: int,
    month: int,
    records: DayRecords,
    holidays: Iterable[date],
    today: date,
) -> MonthlySummary:
    """Count present/absent days for a month up to and including today.

    Holidays and weekends are excluded. Unmarked workdays before today
    count as absent; today without a record is pending.
    """
    holiday_set = set(holidays)
    summary = MonthlySummary(year=year, month=month)
    present = ZERO
    absent = ZERO

    for day in month_days(year, month):
        if day > today:
            break
        if day in holiday_set or is_weekend(day):
            summary.excluded += 1
            continue

        raw = records.get(day)
        if raw is None:
            if day < today:
                absent += ONE
            else:
                summary.pending += 1
            continue

        status = AttendanceStatus(raw)
        if status == AttendanceStatus.PRESENT:
            present += ONE
        elif status == AttendanceStatus.ABSENT:
            absent += ONE
        elif status == AttendanceStatus.HALF_DAY:
            present += HALF
            absent += HALF

    summary.present = present
    summary.absent = absent
    summary.attendance_rate = attendance_rate(present, absent)
    return summary


def attendance_rate(present: Decimal, absent: Decimal) -> int:
    """Present share as a whole percentage; the denominator is at least 1."""
    denominator = max(present + absent, ONE)
    rate = present / denominator * Decimal(100)
    return int(rate.quantize(ONE, rounding=ROUND_HALF_UP))


def count_statuses(logs: Iterable[tuple[AttendanceStatus | str, object]]) -> StatusCounts:
    """Tally (status, work_hours) pairs into raw per-status counts."""
    counts = StatusCounts()
    total_hours = ZERO
    for raw_status, work_hours in logs:
        counts.total_days += 1
        status = AttendanceStatus(raw_status)
        setattr(counts, status.value, getattr(counts, status.value) + 1)
        total_hours += to_amount(work_hours)
    counts.total_work_hours = total_hours
    return counts
