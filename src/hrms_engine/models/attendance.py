"""Attendance settings, logs, holidays and regularization requests."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hrms_engine.models.employee import Employee


class AttendanceSettingsRecord(Base, TimestampMixin):
    """Singleton row holding the attendance thresholds."""

    __tablename__ = "attendance_settings"

    attendance_settings_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    standard_work_hours: Mapped[Decimal] = mapped_column(
        Numeric(4, 2), nullable=False, default=Decimal("8.00")
    )
    half_day_threshold: Mapped[Decimal] = mapped_column(
        Numeric(4, 2), nullable=False, default=Decimal("4.00")
    )
    allow_self_clock_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "half_day_threshold > 0 AND half_day_threshold <= standard_work_hours "
            "AND standard_work_hours <= 24",
            name="attendance_settings_thresholds_check",
        ),
    )


class AttendanceLog(Base, TimestampMixin):
    """One employee's attendance for one calendar day.

    Rows are amended, never deleted.
    """

    __tablename__ = "attendance_log"

    attendance_log_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    check_in: Mapped[dt.datetime | None] = mapped_column(nullable=True)
    check_out: Mapped[dt.datetime | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="present")
    work_hours: Mapped[Decimal | None] = mapped_column(Numeric(4, 2), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edited_by: Mapped[UUID | None] = mapped_column(nullable=True)
    edit_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="attendance_log_employee_date_unique"),
        CheckConstraint(
            "status IN ('present', 'absent', 'half_day', 'on_leave', 'weekend', 'holiday')",
            name="attendance_log_status_check",
        ),
    )

    employee: Mapped[Employee] = relationship()


class Holiday(Base, TimestampMixin):
    """Company holiday excluded from attendance counts."""

    __tablename__ = "holiday"

    holiday_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    holiday_type: Mapped[str] = mapped_column(String, nullable=False, default="company")
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint(
            "holiday_type IN ('national', 'regional', 'company')",
            name="holiday_type_check",
        ),
    )


class RegularizationRequest(Base, TimestampMixin):
    """Employee request to correct a missing or wrong attendance entry."""

    __tablename__ = "regularization_request"

    regularization_request_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    attendance_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    request_type: Mapped[str] = mapped_column(String, nullable=False)
    new_check_in: Mapped[dt.datetime | None] = mapped_column(nullable=True)
    new_check_out: Mapped[dt.datetime | None] = mapped_column(nullable=True)
    new_status: Mapped[str | None] = mapped_column(String, nullable=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "request_type IN ('check_in', 'check_out', 'both', 'status_change')",
            name="regularization_request_type_check",
        ),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="regularization_request_status_check",
        ),
    )

    employee: Mapped[Employee] = relationship()
