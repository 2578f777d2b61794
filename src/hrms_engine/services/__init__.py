"""HRMS engine services."""

from hrms_engine.services.access import Actor, Role
from hrms_engine.services.attendance_service import AttendanceFilters, AttendanceService
from hrms_engine.services.errors import (
    ConflictError,
    HRMSError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from hrms_engine.services.payroll_service import PayrollService
from hrms_engine.services.regularization_service import RegularizationService
from hrms_engine.services.state_machine import (
    BatchStatus,
    InvalidTransitionError,
    PayrollBatchStateMachine,
    RegularizationStateMachine,
    RegularizationStatus,
)

__all__ = [
    "Actor",
    "AttendanceFilters",
    "AttendanceService",
    "BatchStatus",
    "ConflictError",
    "HRMSError",
    "InvalidTransitionError",
    "NotFoundError",
    "PayrollBatchStateMachine",
    "PayrollService",
    "PermissionDeniedError",
    "RegularizationService",
    "RegularizationStateMachine",
    "RegularizationStatus",
    "Role",
    "ValidationError",
]
