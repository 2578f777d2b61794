"""Type definitions for attendance and payroll calculations."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping

ZERO = Decimal("0")


class AttendanceStatus(str, Enum):
    """Attendance log status values."""

    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half_day"
    ON_LEAVE = "on_leave"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"


class AbsentDeductionType(str, Enum):
    """How loss of pay is charged per absent day."""

    PERCENTAGE = "percentage"  # percent of the daily salary
    AMOUNT = "amount"  # flat amount per day


def to_amount(value: Any) -> Decimal:
    """Coerce a loosely-typed numeric value to Decimal.

    Absent, empty, non-numeric, NaN and infinite values become zero.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite():
        return ZERO
    return result


@dataclass(frozen=True)
class AttendanceSettings:
    """Thresholds used to classify a day's worked hours."""

    standard_work_hours: Decimal = Decimal("8.00")
    half_day_threshold: Decimal = Decimal("4.00")
    allow_self_clock_in: bool = True


@dataclass(frozen=True)
class Classification:
    """Derived work hours and status for one attendance day.

    Both fields are None when the day cannot be classified yet.
    """

    hours: Decimal | None = None
    status: AttendanceStatus | None = None

    @property
    def is_determined(self) -> bool:
        return self.status is not None


@dataclass
class MonthlySummary:
    """Calendar-based attendance counts for one employee-month."""

    year: int
    month: int
    present: Decimal = ZERO
    absent: Decimal = ZERO
    pending: int = 0
    excluded: int = 0
    attendance_rate: int = 0


@dataclass
class StatusCounts:
    """Raw per-status counts over a set of attendance logs."""

    total_days: int = 0
    present: int = 0
    absent: int = 0
    half_day: int = 0
    on_leave: int = 0
    weekend: int = 0
    holiday: int = 0
    total_work_hours: Decimal = ZERO


@dataclass(frozen=True)
class EarningComponents:
    """Earning side of a salary slip."""

    basic_salary: Decimal = ZERO
    hra: Decimal = ZERO
    da: Decimal = ZERO
    reimbursements: Decimal = ZERO
    bonus: Decimal = ZERO

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> EarningComponents:
        data = data or {}
        return cls(**{f.name: to_amount(data.get(f.name)) for f in fields(cls)})

    def values(self) -> list[Decimal]:
        return [getattr(self, f.name) for f in fields(self)]

    def to_dict(self) -> dict[str, Decimal]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class DeductionComponents:
    """Deduction side of a salary slip."""

    pf: Decimal = ZERO
    tax: Decimal = ZERO
    loss_of_pay: Decimal = ZERO
    other: Decimal = ZERO

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> DeductionComponents:
        data = data or {}
        return cls(**{f.name: to_amount(data.get(f.name)) for f in fields(cls)})

    def values(self) -> list[Decimal]:
        return [getattr(self, f.name) for f in fields(self)]

    def to_dict(self) -> dict[str, Decimal]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class SlipTotals:
    """Gross, deductions and net for one slip."""

    gross: Decimal
    total_deductions: Decimal
    net: Decimal


@dataclass(frozen=True)
class PayrollRules:
    """Salary split and statutory rates applied during a monthly payroll run.

    Shares and rates are fractions of the monthly salary, except
    absent_deduction_value which is a percent of the daily salary in
    percentage mode and a flat amount per day in amount mode.
    """

    basic_share: Decimal = Decimal("0.50")
    hra_share: Decimal = Decimal("0.30")
    da_share: Decimal = Decimal("0.20")
    pf_rate: Decimal = Decimal("0.12")
    esi_rate: Decimal = Decimal("0.0075")
    tax_rate: Decimal = Decimal("0.10")
    tax_threshold: Decimal = Decimal("50000")
    absent_deduction_type: AbsentDeductionType = AbsentDeductionType.PERCENTAGE
    absent_deduction_value: Decimal = Decimal("3.33")


@dataclass
class PayrollLine:
    """One employee's computed payroll for a month."""

    earnings: EarningComponents
    deductions: DeductionComponents
    totals: SlipTotals
    present_days: Decimal
    absent_days: Decimal
    total_days: int
    esi: Decimal = ZERO


@dataclass
class ProcessingRun:
    """Slips generated together within one minute of a batch."""

    generated_at: datetime
    slips: list[Any] = field(default_factory=list)

    @property
    def employee_count(self) -> int:
        return len(self.slips)


DayRecords = Mapping[date, AttendanceStatus | str]
