"""Payroll batch, salary slip and reimbursement models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hrms_engine.models.employee import Employee

MONEY = Numeric(12, 2)


class PayrollBatch(Base, TimestampMixin):
    """All slips generated for one (month, year)."""

    __tablename__ = "payroll_batch"

    payroll_batch_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    total_employees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    processed_by: Mapped[UUID | None] = mapped_column(nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("month", "year", name="payroll_batch_month_year_unique"),
        CheckConstraint("month BETWEEN 1 AND 12", name="payroll_batch_month_check"),
        CheckConstraint(
            "status IN ('draft', 'processed', 'paid')",
            name="payroll_batch_status_check",
        ),
    )

    slips: Mapped[list[SalarySlip]] = relationship(
        back_populates="batch", cascade="all, delete-orphan"
    )


class SalarySlip(Base, TimestampMixin):
    """Snapshot of one employee's pay for a month."""

    __tablename__ = "salary_slip"

    salary_slip_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    payroll_batch_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_batch.payroll_batch_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Earnings
    basic_salary: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    hra: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    da: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    reimbursements: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    bonus: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))

    # Deductions
    pf: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    tax: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    loss_of_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    other: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))

    gross_salary: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    net_salary: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    present_days: Mapped[Decimal] = mapped_column(Numeric(5, 1), nullable=False, default=Decimal("0"))
    absent_days: Mapped[Decimal] = mapped_column(Numeric(5, 1), nullable=False, default=Decimal("0"))
    total_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    generated_at: Mapped[datetime] = mapped_column(nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="salary_slip_employee_period_unique"),
        CheckConstraint(
            "status IN ('draft', 'processed', 'paid')",
            name="salary_slip_status_check",
        ),
    )

    batch: Mapped[PayrollBatch] = relationship(back_populates="slips")
    employee: Mapped[Employee] = relationship()

    @property
    def total_deductions(self) -> Decimal:
        return self.pf + self.tax + self.loss_of_pay + self.other


class Reimbursement(Base, TimestampMixin):
    """Expense claim paid out through the next payroll run once approved."""

    __tablename__ = "reimbursement"

    reimbursement_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category: Mapped[str] = mapped_column(String, nullable=False, default="other")
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Set when a payroll run pays the claim out
    payroll_batch_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_batch.payroll_batch_id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "category IN ('travel', 'event', 'medical', 'equipment', 'other')",
            name="reimbursement_category_check",
        ),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'paid')",
            name="reimbursement_status_check",
        ),
        CheckConstraint("amount >= 0", name="reimbursement_amount_nonneg"),
    )
