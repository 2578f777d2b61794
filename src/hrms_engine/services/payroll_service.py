"""Payroll service - salary slips, monthly runs and batch lifecycle."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms_engine.calculators.attendance import month_days
from hrms_engine.calculators.payroll import (
    batch_total,
    compute_payroll_line,
    compute_slip,
    group_processing_runs,
    normalize_legacy_fields,
)
from hrms_engine.calculators.types import (
    ZERO,
    AbsentDeductionType,
    DeductionComponents,
    EarningComponents,
    PayrollLine,
    PayrollRules,
    ProcessingRun,
)
from hrms_engine.config import get_settings
from hrms_engine.models import (
    AttendanceLog,
    Employee,
    PayrollBatch,
    Reimbursement,
    SalarySlip,
)
from hrms_engine.services.access import Actor
from hrms_engine.services.errors import ConflictError, NotFoundError, ValidationError
from hrms_engine.services.state_machine import (
    BatchStatus,
    InvalidTransitionError,
    PayrollBatchStateMachine,
)

logger = logging.getLogger(__name__)


def rules_from_settings() -> PayrollRules:
    settings = get_settings()
    return PayrollRules(
        pf_rate=settings.pf_rate,
        esi_rate=settings.esi_rate,
        tax_rate=settings.tax_rate,
        tax_threshold=settings.tax_threshold,
        absent_deduction_type=AbsentDeductionType(settings.absent_deduction_type),
        absent_deduction_value=settings.absent_deduction_value,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _validate_period(month: Any, year: Any) -> None:
    if not month or not year:
        raise ValidationError("Month and year are required")
    if not 1 <= int(month) <= 12:
        raise ValidationError("Month must be between 1 and 12")


def _per_employee(values: Mapping[Any, Any] | None, employee_id: UUID) -> Any:
    """Look up a per-employee amount keyed by UUID or its string form."""
    if not values:
        return None
    if employee_id in values:
        return values[employee_id]
    return values.get(str(employee_id))


@dataclass
class PayrollPreviewLine:
    """Unsaved payroll result for one employee."""

    employee_id: UUID
    employee_name: str
    employee_code: str
    line: PayrollLine


@dataclass
class PayrollRunResult:
    batch: PayrollBatch
    slips: list[SalarySlip]


class PayrollService:
    """Service for payroll batches and salary slips.

    Operations:
    - create_slip: manual slip from explicit earnings and deductions
    - preview: compute a month's payroll without writing
    - process: (re)generate a month's slips and mark the batch processed
    - mark_paid: processed → paid, cascading to member slips
    """

    def __init__(self, session: AsyncSession, rules: PayrollRules | None = None):
        self.session = session
        self.rules = rules or rules_from_settings()

    async def get_batch(self, payroll_batch_id: UUID) -> PayrollBatch:
        batch = await self.session.get(PayrollBatch, payroll_batch_id)
        if batch is None:
            raise NotFoundError("Payroll batch not found")
        return batch

    async def _find_batch(self, month: int, year: int) -> PayrollBatch | None:
        result = await self.session.execute(
            select(PayrollBatch).where(PayrollBatch.month == month, PayrollBatch.year == year)
        )
        return result.scalar_one_or_none()

    async def _get_or_create_batch(self, actor: Actor, month: int, year: int) -> PayrollBatch:
        batch = await self._find_batch(month, year)
        if batch is None:
            batch = PayrollBatch(
                month=month,
                year=year,
                status=BatchStatus.DRAFT.value,
                total_employees=0,
                total_amount=ZERO,
                processed_by=actor.user_id,
            )
            self.session.add(batch)
            await self.session.flush()
        return batch

    async def create_slip(
        self,
        actor: Actor,
        employee_id: UUID | None,
        month: int,
        year: int,
        earnings: Mapping[str, Any] | None = None,
        deductions: Mapping[str, Any] | None = None,
        notes: str | None = None,
    ) -> SalarySlip:
        """Create a draft slip and add it to the month's batch totals."""
        actor.require_privileged("create salary slips")
        if not employee_id:
            raise ValidationError("Please select an employee")
        _validate_period(month, year)

        earning_parts = EarningComponents.from_mapping(normalize_legacy_fields(earnings))
        deduction_parts = DeductionComponents.from_mapping(normalize_legacy_fields(deductions))
        if any(v < 0 for v in earning_parts.values() + deduction_parts.values()):
            raise ValidationError("Salary components cannot be negative")

        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee not found")

        batch = await self._get_or_create_batch(actor, month, year)
        if batch.status == BatchStatus.PAID:
            raise ConflictError("Payroll for this month is already paid")

        existing = await self.session.execute(
            select(SalarySlip.salary_slip_id).where(
                SalarySlip.employee_id == employee_id,
                SalarySlip.month == month,
                SalarySlip.year == year,
            )
        )
        if existing.first() is not None:
            raise ConflictError("Salary slip already exists for this employee for this month")

        totals = compute_slip(earning_parts, deduction_parts)
        slip = SalarySlip(
            employee_id=employee_id,
            payroll_batch_id=batch.payroll_batch_id,
            month=month,
            year=year,
            basic_salary=earning_parts.basic_salary,
            hra=earning_parts.hra,
            da=earning_parts.da,
            reimbursements=earning_parts.reimbursements,
            bonus=earning_parts.bonus,
            **deduction_parts.to_dict(),
            gross_salary=totals.gross,
            net_salary=totals.net,
            total_days=calendar.monthrange(year, month)[1],
            notes=notes,
            status="draft",
            generated_at=_utcnow(),
        )
        self.session.add(slip)

        batch.total_employees += 1
        batch.total_amount = batch.total_amount + totals.net
        await self.session.flush()

        logger.info(
            "Salary slip created for %s %s/%s: gross=%s net=%s",
            employee_id,
            month,
            year,
            totals.gross,
            totals.net,
        )
        return slip

    async def _month_statuses(self, employee_id: UUID, month: int, year: int) -> list[str]:
        days = month_days(year, month)
        result = await self.session.execute(
            select(AttendanceLog.status).where(
                AttendanceLog.employee_id == employee_id,
                AttendanceLog.date.between(days[0], days[-1]),
            )
        )
        return list(result.scalars().all())

    async def _payable_reimbursements(
        self, employee_id: UUID, batch: PayrollBatch | None
    ) -> list[Reimbursement]:
        """Approved claims not yet paid out, plus those already in this batch."""
        payable = and_(
            Reimbursement.status == "approved",
            Reimbursement.payroll_batch_id.is_(None),
        )
        if batch is not None:
            payable = or_(payable, Reimbursement.payroll_batch_id == batch.payroll_batch_id)
        result = await self.session.execute(
            select(Reimbursement).where(Reimbursement.employee_id == employee_id, payable)
        )
        return list(result.scalars().all())

    async def _compute_lines(
        self,
        month: int,
        year: int,
        employee_ids: Sequence[UUID],
        bonuses: Mapping[Any, Any] | None,
        deductions: Mapping[Any, Any] | None,
        batch: PayrollBatch | None,
    ) -> list[tuple[Employee, PayrollLine, list[Reimbursement]]]:
        total_days = calendar.monthrange(year, month)[1]
        lines = []
        for employee_id in employee_ids:
            employee = await self.session.get(Employee, employee_id)
            if employee is None:
                logger.warning("Skipping unknown employee %s in payroll run", employee_id)
                continue
            statuses = await self._month_statuses(employee_id, month, year)
            claims = await self._payable_reimbursements(employee_id, batch)
            line = compute_payroll_line(
                employee.salary,
                statuses,
                total_days,
                self.rules,
                bonus=_per_employee(bonuses, employee_id),
                other_deductions=_per_employee(deductions, employee_id),
                reimbursements=sum((claim.amount for claim in claims), ZERO),
            )
            lines.append((employee, line, claims))
        return lines

    async def preview(
        self,
        actor: Actor,
        month: int,
        year: int,
        employee_ids: Sequence[UUID],
        bonuses: Mapping[Any, Any] | None = None,
        deductions: Mapping[Any, Any] | None = None,
    ) -> list[PayrollPreviewLine]:
        """Compute payroll for the given employees without persisting."""
        actor.require_privileged("preview payroll")
        _validate_period(month, year)
        batch = await self._find_batch(month, year)
        lines = await self._compute_lines(
            month, year, employee_ids, bonuses, deductions, batch
        )
        return [
            PayrollPreviewLine(
                employee_id=employee.employee_id,
                employee_name=employee.name,
                employee_code=employee.employee_code,
                line=line,
            )
            for employee, line, _ in lines
        ]

    async def process(
        self,
        actor: Actor,
        month: int,
        year: int,
        employee_ids: Sequence[UUID],
        bonuses: Mapping[Any, Any] | None = None,
        deductions: Mapping[Any, Any] | None = None,
    ) -> PayrollRunResult:
        """Generate the month's slips, replacing any earlier run's slips."""
        actor.require_privileged("process payroll")
        _validate_period(month, year)
        if not employee_ids:
            raise ValidationError("Select at least one employee")

        batch = await self._get_or_create_batch(actor, month, year)
        if not PayrollBatchStateMachine.can_reprocess(batch.status):
            raise InvalidTransitionError(
                batch.status, BatchStatus.PROCESSED, "Payroll already paid for this month"
            )
        await self.session.execute(
            delete(SalarySlip).where(SalarySlip.payroll_batch_id == batch.payroll_batch_id)
        )

        generated_at = _utcnow()
        slips = []
        for employee, line, claims in await self._compute_lines(
            month, year, employee_ids, bonuses, deductions, batch
        ):
            slip = SalarySlip(
                employee_id=employee.employee_id,
                payroll_batch_id=batch.payroll_batch_id,
                month=month,
                year=year,
                **line.earnings.to_dict(),
                **line.deductions.to_dict(),
                gross_salary=line.totals.gross,
                net_salary=line.totals.net,
                present_days=line.present_days,
                absent_days=line.absent_days,
                total_days=line.total_days,
                status=BatchStatus.PROCESSED.value,
                generated_at=generated_at,
            )
            self.session.add(slip)
            slips.append(slip)
            for claim in claims:
                claim.status = "paid"
                claim.payroll_batch_id = batch.payroll_batch_id

        if batch.status == BatchStatus.DRAFT:
            PayrollBatchStateMachine.validate_transition(batch.status, BatchStatus.PROCESSED)
        batch.status = BatchStatus.PROCESSED.value
        batch.total_employees = len(slips)
        batch.total_amount = batch_total(s.net_salary for s in slips)
        batch.processed_by = actor.user_id
        batch.processed_at = generated_at
        await self.session.flush()

        logger.info(
            "Payroll processed for %s/%s: %s slips, total=%s",
            month,
            year,
            len(slips),
            batch.total_amount,
        )
        return PayrollRunResult(batch=batch, slips=slips)

    async def mark_paid(self, actor: Actor, payroll_batch_id: UUID) -> PayrollBatch:
        """Mark a processed batch and all of its slips as paid."""
        actor.require_privileged("mark payroll as paid")
        batch = await self.get_batch(payroll_batch_id)
        if batch.status == BatchStatus.PAID:
            raise ConflictError("Payroll already marked as paid")
        PayrollBatchStateMachine.validate_transition(batch.status, BatchStatus.PAID)

        batch.status = BatchStatus.PAID.value
        batch.paid_at = _utcnow()
        await self.session.execute(
            update(SalarySlip)
            .where(SalarySlip.payroll_batch_id == payroll_batch_id)
            .values(status=BatchStatus.PAID.value)
        )
        await self.session.flush()
        logger.info("Payroll batch %s marked paid", payroll_batch_id)
        return batch

    async def list_batches(self) -> list[PayrollBatch]:
        result = await self.session.execute(
            select(PayrollBatch).order_by(PayrollBatch.year.desc(), PayrollBatch.month.desc())
        )
        return list(result.scalars().all())

    async def list_slips(
        self,
        actor: Actor,
        employee_id: UUID | None = None,
        month: int | None = None,
        year: int | None = None,
    ) -> list[SalarySlip]:
        """Slips newest period first; employees only see their own."""
        query = select(SalarySlip)
        if not actor.is_privileged:
            query = query.where(SalarySlip.employee_id == actor.user_id)
        elif employee_id:
            query = query.where(SalarySlip.employee_id == employee_id)
        if month:
            query = query.where(SalarySlip.month == month)
        if year:
            query = query.where(SalarySlip.year == year)
        result = await self.session.execute(
            query.order_by(SalarySlip.year.desc(), SalarySlip.month.desc())
        )
        return list(result.scalars().all())

    async def batch_runs(self, actor: Actor, payroll_batch_id: UUID) -> list[ProcessingRun]:
        """Slips of a batch grouped into processing runs, newest first."""
        actor.require_privileged("view payroll batches")
        await self.get_batch(payroll_batch_id)
        result = await self.session.execute(
            select(SalarySlip).where(SalarySlip.payroll_batch_id == payroll_batch_id)
        )
        return group_processing_runs(list(result.scalars().all()))
