"""Regularization request API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from hrms_engine.api.dependencies import CurrentActor, DbSession
from hrms_engine.api.schemas import (
    ErrorResponse,
    RegularizationCreate,
    RegularizationDecision,
    RegularizationResponse,
)
from hrms_engine.services.regularization_service import RegularizationService

router = APIRouter(prefix="/regularizations", tags=["regularizations"])


@router.post(
    "/request",
    response_model=RegularizationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def request_regularization(
    db: DbSession, actor: CurrentActor, payload: RegularizationCreate
) -> RegularizationResponse:
    """Submit a correction request for the caller's own attendance."""
    request = await RegularizationService(db).submit(
        actor,
        attendance_date=payload.attendance_date,
        request_type=payload.type,
        reason=payload.reason,
        new_check_in=payload.new_check_in,
        new_check_out=payload.new_check_out,
        new_status=payload.new_status,
    )
    await db.commit()
    return RegularizationResponse.model_validate(request)


@router.get("/my", response_model=list[RegularizationResponse])
async def my_regularizations(
    db: DbSession, actor: CurrentActor
) -> list[RegularizationResponse]:
    """List the caller's own requests."""
    requests = await RegularizationService(db).list_mine(actor)
    return [RegularizationResponse.model_validate(r) for r in requests]


@router.get(
    "",
    response_model=list[RegularizationResponse],
    responses={403: {"model": ErrorResponse}},
)
async def all_regularizations(
    db: DbSession,
    actor: CurrentActor,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[RegularizationResponse]:
    """List all requests (HR/admin)."""
    requests = await RegularizationService(db).list_all(actor, status_filter)
    return [RegularizationResponse.model_validate(r) for r in requests]


@router.post(
    "/{request_id}/process",
    response_model=RegularizationResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def process_regularization(
    db: DbSession,
    actor: CurrentActor,
    request_id: Annotated[UUID, Path()],
    payload: RegularizationDecision,
) -> RegularizationResponse:
    """Approve or reject a pending request."""
    request = await RegularizationService(db).process(
        actor, request_id, payload.status, payload.remarks
    )
    await db.commit()
    return RegularizationResponse.model_validate(request)
