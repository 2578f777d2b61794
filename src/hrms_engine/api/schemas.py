"""Pydantic schemas for API request/response models."""

import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

AttendanceStatusValue = Literal["present", "absent", "half_day", "on_leave", "weekend", "holiday"]


# ============================================================================
# Attendance settings schemas
# ============================================================================


class AttendanceSettingsResponse(BaseModel):
    """Schema for attendance thresholds."""

    model_config = ConfigDict(from_attributes=True)

    standard_work_hours: Decimal
    half_day_threshold: Decimal
    allow_self_clock_in: bool


class AttendanceSettingsUpdate(BaseModel):
    """Schema for updating thresholds; omitted fields are unchanged."""

    standard_work_hours: Decimal | None = None
    half_day_threshold: Decimal | None = None
    allow_self_clock_in: bool | None = None


# ============================================================================
# Attendance schemas
# ============================================================================


class AttendanceMark(BaseModel):
    """Schema for clock-in/out or HR mark."""

    employee_id: UUID | None = None
    date: dt.date | None = None
    check_in: datetime | None = None
    check_out: datetime | None = None
    status: AttendanceStatusValue | None = None
    notes: str | None = None


class AttendanceUpdate(BaseModel):
    """Schema for an HR edit of an existing record."""

    date: dt.date | None = None
    check_in: datetime | None = None
    check_out: datetime | None = None
    status: AttendanceStatusValue | None = None
    notes: str | None = None
    edit_reason: str | None = None


class AttendanceLockRequest(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int


class AttendanceLockResponse(BaseModel):
    message: str
    locked: int


class AttendanceLogResponse(BaseModel):
    """Schema for an attendance record."""

    model_config = ConfigDict(from_attributes=True)

    attendance_log_id: UUID
    employee_id: UUID
    date: dt.date
    check_in: datetime | None = None
    check_out: datetime | None = None
    status: str
    work_hours: Decimal | None = None
    notes: str | None = None
    is_locked: bool
    edited_by: UUID | None = None
    edit_reason: str | None = None


class ClassifyRequest(BaseModel):
    """Schema for a live status preview."""

    check_in: datetime | None = None
    check_out: datetime | None = None
    status: AttendanceStatusValue | None = None


class ClassifyResponse(BaseModel):
    hours: Decimal | None = None
    status: str | None = None


class MonthlySummaryResponse(BaseModel):
    """Schema for the calendar-based monthly summary."""

    model_config = ConfigDict(from_attributes=True)

    year: int
    month: int
    present: Decimal
    absent: Decimal
    pending: int
    excluded: int
    attendance_rate: int


class StatusCountsResponse(BaseModel):
    """Schema for raw per-status counts."""

    model_config = ConfigDict(from_attributes=True)

    total_days: int
    present: int
    absent: int
    half_day: int
    on_leave: int
    weekend: int
    holiday: int
    total_work_hours: Decimal


# ============================================================================
# Regularization schemas
# ============================================================================


class RegularizationCreate(BaseModel):
    attendance_date: date
    type: Literal["check_in", "check_out", "both", "status_change"]
    new_check_in: datetime | None = None
    new_check_out: datetime | None = None
    new_status: Literal["present", "half_day", "absent"] | None = None
    reason: str | None = None


class RegularizationDecision(BaseModel):
    status: Literal["approved", "rejected"]
    remarks: str | None = None


class RegularizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    regularization_request_id: UUID
    employee_id: UUID
    attendance_date: date
    request_type: str
    new_check_in: datetime | None = None
    new_check_out: datetime | None = None
    new_status: str | None = None
    reason: str
    status: str
    approved_by: UUID | None = None
    remarks: str | None = None


# ============================================================================
# Payroll schemas
# ============================================================================


class SalarySlipCreate(BaseModel):
    """Schema for a manual salary slip.

    Earnings and deductions are loose mappings so legacy keys
    (``lop``, ``other_deductions``) can be normalized server-side.
    """

    employee_id: UUID | None = None
    month: int = Field(ge=1, le=12)
    year: int
    earnings: dict[str, Any] = Field(default_factory=dict)
    deductions: dict[str, Any] = Field(default_factory=dict)
    notes: str | None = None


class SalarySlipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    salary_slip_id: UUID
    employee_id: UUID
    payroll_batch_id: UUID
    month: int
    year: int
    basic_salary: Decimal
    hra: Decimal
    da: Decimal
    reimbursements: Decimal
    bonus: Decimal
    pf: Decimal
    tax: Decimal
    loss_of_pay: Decimal
    other: Decimal
    total_deductions: Decimal
    gross_salary: Decimal
    net_salary: Decimal
    present_days: Decimal
    absent_days: Decimal
    total_days: int
    status: str
    generated_at: datetime


class PayrollBatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payroll_batch_id: UUID
    month: int
    year: int
    status: str
    total_employees: int
    total_amount: Decimal
    processed_by: UUID | None = None
    processed_at: datetime | None = None
    paid_at: datetime | None = None


class ProcessingRunResponse(BaseModel):
    generated_at: datetime
    employee_count: int
    total_net: Decimal
    slips: list[SalarySlipResponse]


class PayrollRunRequest(BaseModel):
    """Schema for payroll preview/process."""

    month: int = Field(ge=1, le=12)
    year: int
    employee_ids: list[UUID]
    bonuses: dict[str, Decimal] = Field(default_factory=dict)
    deductions: dict[str, Decimal] = Field(default_factory=dict)


class PayrollPreviewItem(BaseModel):
    employee_id: UUID
    employee_name: str
    employee_code: str
    basic_salary: Decimal
    hra: Decimal
    da: Decimal
    reimbursements: Decimal
    bonus: Decimal
    present_days: Decimal
    absent_days: Decimal
    total_days: int
    loss_of_pay: Decimal
    pf: Decimal
    esi: Decimal  # already included in other
    tax: Decimal
    other: Decimal
    gross_salary: Decimal
    total_deductions: Decimal
    net_salary: Decimal


class PayrollProcessResponse(BaseModel):
    message: str
    batch: PayrollBatchResponse
    slips: list[SalarySlipResponse]


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
