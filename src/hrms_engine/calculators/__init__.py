"""Attendance classification and payroll aggregation."""

from hrms_engine.calculators.attendance import (
    calculate_work_hours,
    classify,
    count_statuses,
    derive_status,
    parse_status,
    summarize_month,
    to_utc_naive,
)
from hrms_engine.calculators.payroll import (
    batch_total,
    compute_payroll_line,
    compute_slip,
    group_processing_runs,
    normalize_legacy_fields,
)
from hrms_engine.calculators.types import (
    AbsentDeductionType,
    AttendanceSettings,
    AttendanceStatus,
    Classification,
    DeductionComponents,
    EarningComponents,
    PayrollRules,
    SlipTotals,
)

__all__ = [
    "AbsentDeductionType",
    "AttendanceSettings",
    "AttendanceStatus",
    "Classification",
    "DeductionComponents",
    "EarningComponents",
    "PayrollRules",
    "SlipTotals",
    "batch_total",
    "calculate_work_hours",
    "classify",
    "compute_payroll_line",
    "compute_slip",
    "count_statuses",
    "derive_status",
    "group_processing_runs",
    "normalize_legacy_fields",
    "parse_status",
    "summarize_month",
    "to_utc_naive",
]
