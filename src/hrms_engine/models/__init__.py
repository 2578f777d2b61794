"""SQLAlchemy ORM models."""

from hrms_engine.models.attendance import (
    AttendanceLog,
    AttendanceSettingsRecord,
    Holiday,
    RegularizationRequest,
)
from hrms_engine.models.base import Base, TimestampMixin
from hrms_engine.models.employee import Employee
from hrms_engine.models.payroll import PayrollBatch, Reimbursement, SalarySlip

__all__ = [
    "AttendanceLog",
    "AttendanceSettingsRecord",
    "Base",
    "Employee",
    "Holiday",
    "PayrollBatch",
    "RegularizationRequest",
    "Reimbursement",
    "SalarySlip",
    "TimestampMixin",
]
