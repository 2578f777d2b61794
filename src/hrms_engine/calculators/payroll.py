"""Salary slip aggregation and monthly payroll line computation."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Sequence

from hrms_engine.calculators.attendance import HALF, ONE
from hrms_engine.calculators.types import (
    ZERO,
    AbsentDeductionType,
    AttendanceStatus,
    DeductionComponents,
    EarningComponents,
    PayrollLine,
    PayrollRules,
    ProcessingRun,
    SlipTotals,
    to_amount,
)

UNIT = Decimal("1")
HUNDRED = Decimal("100")

# legacy key -> canonical key
LEGACY_ALIASES: dict[str, str] = {
    "lop": "loss_of_pay",
    "other_deductions": "other",
    "basic": "basic_salary",
}


def round_to_units(amount: Decimal) -> Decimal:
    """Round amount half-up to a whole currency unit."""
    return amount.quantize(UNIT, rounding=ROUND_HALF_UP)


def normalize_legacy_fields(payload: Mapping[str, Any] | None) -> dict[str, Any]:
    """Fold legacy field names into their canonical names.

    The canonical key wins when both spellings are present. Run this once
    where data enters the system; compute_slip only knows canonical names.
    """
    result: dict[str, Any] = {}
    if not payload:
        return result
    for key, value in payload.items():
        if key not in LEGACY_ALIASES:
            result[key] = value
    for legacy, canonical in LEGACY_ALIASES.items():
        if legacy in payload and result.get(canonical) is None:
            result[canonical] = payload[legacy]
    return result


def compute_slip(
    earnings: EarningComponents | Mapping[str, Any] | None,
    deductions: DeductionComponents | Mapping[str, Any] | None,
) -> SlipTotals:
    """Compute gross, total deductions and net pay.

    Net is not clamped: deductions above earnings give a negative net.
    """
    if not isinstance(earnings, EarningComponents):
        earnings = EarningComponents.from_mapping(earnings)
    if not isinstance(deductions, DeductionComponents):
        deductions = DeductionComponents.from_mapping(deductions)

    gross = sum(earnings.values(), ZERO)
    total_deductions = sum(deductions.values(), ZERO)
    return SlipTotals(
        gross=gross,
        total_deductions=total_deductions,
        net=gross - total_deductions,
    )


def batch_total(nets: Iterable[Any]) -> Decimal:
    """Sum of member-slip net salaries."""
    return sum((to_amount(n) for n in nets), ZERO)


def group_processing_runs(slips: Sequence[Any]) -> list[ProcessingRun]:
    """Group slips by generation time (to the minute), newest run first.

    Slips only need a ``generated_at`` datetime attribute.
    """
    groups: dict[datetime, list[Any]] = defaultdict(list)
    for slip in slips:
        key = slip.generated_at.replace(second=0, microsecond=0)
        groups[key].append(slip)
    return [
        ProcessingRun(generated_at=key, slips=groups[key])
        for key in sorted(groups, reverse=True)
    ]


def attendance_days(
    statuses: Iterable[AttendanceStatus | str],
) -> tuple[Decimal, Decimal]:
    """Return (present_days, absent_days) for a month of attendance statuses.

    A half day counts half present and half absent. Leave, weekends and
    holidays count toward neither.
    """
    present = ZERO
    absent = ZERO
    for raw in statuses:
        status = AttendanceStatus(raw)
        if status == AttendanceStatus.PRESENT:
            present += ONE
        elif status == AttendanceStatus.ABSENT:
            absent += ONE
        elif status == AttendanceStatus.HALF_DAY:
            present += HALF
            absent += HALF
    return present, absent


def loss_of_pay(
    salary: Decimal, absent_days: Decimal, total_days: int, rules: PayrollRules
) -> Decimal:
    """Deduction for absent days, in whole units."""
    value = rules.absent_deduction_value
    if rules.absent_deduction_type == AbsentDeductionType.AMOUNT:
        return round_to_units(absent_days * value)
    if not total_days:
        return ZERO
    daily_salary = salary / Decimal(total_days)
    return round_to_units(absent_days * daily_salary * value / HUNDRED)


def compute_payroll_line(
    salary: Any,
    statuses: Iterable[AttendanceStatus | str],
    total_days: int,
    rules: PayrollRules,
    bonus: Any = None,
    other_deductions: Any = None,
    reimbursements: Any = None,
) -> PayrollLine:
    """Derive one employee's monthly slip from salary and attendance.

    The monthly salary splits into basic, HRA and DA by the rule shares.
    PF is charged on basic, ESI on the whole salary, and tax only above
    the threshold. ESI is carried in the ``other`` deduction.
    """
    salary = to_amount(salary)
    present_days, absent_days = attendance_days(statuses)

    earnings = EarningComponents(
        basic_salary=round_to_units(salary * rules.basic_share),
        hra=round_to_units(salary * rules.hra_share),
        da=round_to_units(salary * rules.da_share),
        reimbursements=round_to_units(to_amount(reimbursements)),
        bonus=to_amount(bonus),
    )

    esi = round_to_units(salary * rules.esi_rate)
    tax = ZERO
    if salary > rules.tax_threshold:
        tax = round_to_units(salary * rules.tax_rate)

    deductions = DeductionComponents(
        pf=round_to_units(earnings.basic_salary * rules.pf_rate),
        tax=tax,
        loss_of_pay=loss_of_pay(salary, absent_days, total_days, rules),
        other=to_amount(other_deductions) + esi,
    )
    return PayrollLine(
        earnings=earnings,
        deductions=deductions,
        totals=compute_slip(earnings, deductions),
        present_days=present_days,
        absent_days=absent_days,
        total_days=total_days,
        esi=esi,
    )
