"""Payroll API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from hrms_engine.api.dependencies import CurrentActor, DbSession
from hrms_engine.api.schemas import (
    ErrorResponse,
    PayrollBatchResponse,
    PayrollPreviewItem,
    PayrollProcessResponse,
    PayrollRunRequest,
    ProcessingRunResponse,
    SalarySlipCreate,
    SalarySlipResponse,
)
from hrms_engine.calculators.payroll import batch_total
from hrms_engine.services.payroll_service import PayrollService

router = APIRouter(prefix="/payroll", tags=["payroll"])


# ============================================================================
# Salary slips
# ============================================================================


@router.get("/slips", response_model=list[SalarySlipResponse])
async def list_salary_slips(
    db: DbSession,
    actor: CurrentActor,
    employee_id: UUID | None = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    year: int | None = None,
) -> list[SalarySlipResponse]:
    """List salary slips; employees only see their own."""
    slips = await PayrollService(db).list_slips(actor, employee_id, month, year)
    return [SalarySlipResponse.model_validate(s) for s in slips]


@router.post(
    "/slips",
    response_model=SalarySlipResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def create_salary_slip(
    db: DbSession, actor: CurrentActor, payload: SalarySlipCreate
) -> SalarySlipResponse:
    """Create a manual salary slip (HR/admin)."""
    slip = await PayrollService(db).create_slip(
        actor,
        employee_id=payload.employee_id,
        month=payload.month,
        year=payload.year,
        earnings=payload.earnings,
        deductions=payload.deductions,
        notes=payload.notes,
    )
    await db.commit()
    return SalarySlipResponse.model_validate(slip)


# ============================================================================
# Batches and runs
# ============================================================================


@router.get("/batches", response_model=list[PayrollBatchResponse])
async def list_payroll_batches(
    db: DbSession, actor: CurrentActor
) -> list[PayrollBatchResponse]:
    """List payroll batches, newest period first."""
    actor.require_privileged("view payroll batches")
    batches = await PayrollService(db).list_batches()
    return [PayrollBatchResponse.model_validate(b) for b in batches]


@router.get(
    "/batches/{payroll_batch_id}/runs",
    response_model=list[ProcessingRunResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_batch_runs(
    db: DbSession,
    actor: CurrentActor,
    payroll_batch_id: Annotated[UUID, Path()],
) -> list[ProcessingRunResponse]:
    """Slips of a batch grouped by processing run."""
    runs = await PayrollService(db).batch_runs(actor, payroll_batch_id)
    return [
        ProcessingRunResponse(
            generated_at=run.generated_at,
            employee_count=run.employee_count,
            total_net=batch_total(s.net_salary for s in run.slips),
            slips=[SalarySlipResponse.model_validate(s) for s in run.slips],
        )
        for run in runs
    ]


@router.post(
    "/preview",
    response_model=list[PayrollPreviewItem],
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def preview_payroll(
    db: DbSession, actor: CurrentActor, payload: PayrollRunRequest
) -> list[PayrollPreviewItem]:
    """Compute payroll for a month without saving anything."""
    previews = await PayrollService(db).preview(
        actor,
        payload.month,
        payload.year,
        payload.employee_ids,
        bonuses=payload.bonuses,
        deductions=payload.deductions,
    )
    return [
        PayrollPreviewItem(
            employee_id=p.employee_id,
            employee_name=p.employee_name,
            employee_code=p.employee_code,
            **p.line.earnings.to_dict(),
            present_days=p.line.present_days,
            absent_days=p.line.absent_days,
            total_days=p.line.total_days,
            **p.line.deductions.to_dict(),
            esi=p.line.esi,
            gross_salary=p.line.totals.gross,
            total_deductions=p.line.totals.total_deductions,
            net_salary=p.line.totals.net,
        )
        for p in previews
    ]


@router.post(
    "/process",
    response_model=PayrollProcessResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def process_payroll(
    db: DbSession, actor: CurrentActor, payload: PayrollRunRequest
) -> PayrollProcessResponse:
    """Generate the month's slips and mark the batch processed."""
    result = await PayrollService(db).process(
        actor,
        payload.month,
        payload.year,
        payload.employee_ids,
        bonuses=payload.bonuses,
        deductions=payload.deductions,
    )
    await db.commit()
    return PayrollProcessResponse(
        message="Payroll processed successfully",
        batch=PayrollBatchResponse.model_validate(result.batch),
        slips=[SalarySlipResponse.model_validate(s) for s in result.slips],
    )


@router.post(
    "/batches/{payroll_batch_id}/mark-paid",
    response_model=PayrollBatchResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def mark_payroll_paid(
    db: DbSession,
    actor: CurrentActor,
    payroll_batch_id: Annotated[UUID, Path()],
) -> PayrollBatchResponse:
    """Mark a processed batch as paid."""
    batch = await PayrollService(db).mark_paid(actor, payroll_batch_id)
    await db.commit()
    return PayrollBatchResponse.model_validate(batch)
