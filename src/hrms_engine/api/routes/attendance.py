"""Attendance API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from hrms_engine.api.dependencies import CurrentActor, DbSession
from hrms_engine.api.schemas import (
    AttendanceLockRequest,
    AttendanceLockResponse,
    AttendanceLogResponse,
    AttendanceMark,
    AttendanceSettingsResponse,
    AttendanceSettingsUpdate,
    AttendanceUpdate,
    ClassifyRequest,
    ClassifyResponse,
    ErrorResponse,
    MonthlySummaryResponse,
    StatusCountsResponse,
)
from hrms_engine.calculators.attendance import classify, to_utc_naive
from hrms_engine.services.attendance_service import AttendanceFilters, AttendanceService

router = APIRouter(prefix="/attendance", tags=["attendance"])


# ============================================================================
# Settings
# ============================================================================


@router.get("/settings", response_model=AttendanceSettingsResponse)
async def get_attendance_settings(
    db: DbSession, actor: CurrentActor
) -> AttendanceSettingsResponse:
    """Get attendance thresholds, creating defaults on first use."""
    settings = await AttendanceService(db).get_settings()
    await db.commit()
    return AttendanceSettingsResponse.model_validate(settings)


@router.put(
    "/settings",
    response_model=AttendanceSettingsResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def update_attendance_settings(
    db: DbSession, actor: CurrentActor, payload: AttendanceSettingsUpdate
) -> AttendanceSettingsResponse:
    """Update attendance thresholds (HR/admin)."""
    settings = await AttendanceService(db).update_settings(
        actor,
        standard_work_hours=payload.standard_work_hours,
        half_day_threshold=payload.half_day_threshold,
        allow_self_clock_in=payload.allow_self_clock_in,
    )
    await db.commit()
    return AttendanceSettingsResponse.model_validate(settings)


# ============================================================================
# Records
# ============================================================================


@router.get("", response_model=list[AttendanceLogResponse])
async def list_attendance(
    db: DbSession,
    actor: CurrentActor,
    employee_id: UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[AttendanceLogResponse]:
    """List attendance logs, newest first."""
    logs = await AttendanceService(db).list_logs(
        actor,
        AttendanceFilters(
            employee_id=employee_id,
            start_date=start_date,
            end_date=end_date,
            status=status_filter,
        ),
    )
    return [AttendanceLogResponse.model_validate(log) for log in logs]


@router.post(
    "/mark",
    response_model=AttendanceLogResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def mark_attendance(
    db: DbSession, actor: CurrentActor, payload: AttendanceMark
) -> AttendanceLogResponse:
    """Clock in/out, or mark a day for an employee (HR)."""
    log = await AttendanceService(db).mark(
        actor,
        employee_id=payload.employee_id,
        day=payload.date,
        check_in=payload.check_in,
        check_out=payload.check_out,
        status=payload.status,
        notes=payload.notes,
    )
    await db.commit()
    return AttendanceLogResponse.model_validate(log)


@router.put(
    "/update/{attendance_log_id}",
    response_model=AttendanceLogResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_attendance(
    db: DbSession,
    actor: CurrentActor,
    attendance_log_id: Annotated[UUID, Path()],
    payload: AttendanceUpdate,
) -> AttendanceLogResponse:
    """Edit an existing record (HR). An edit reason is mandatory."""
    log = await AttendanceService(db).update(
        actor,
        attendance_log_id,
        edit_reason=payload.edit_reason,
        check_in=payload.check_in,
        check_out=payload.check_out,
        status=payload.status,
        notes=payload.notes,
        day=payload.date,
    )
    await db.commit()
    return AttendanceLogResponse.model_validate(log)


@router.post(
    "/lock",
    response_model=AttendanceLockResponse,
    responses={403: {"model": ErrorResponse}},
)
async def lock_attendance(
    db: DbSession, actor: CurrentActor, payload: AttendanceLockRequest
) -> AttendanceLockResponse:
    """Lock a month's attendance against further edits."""
    locked = await AttendanceService(db).lock_month(actor, payload.month, payload.year)
    await db.commit()
    return AttendanceLockResponse(
        message=f"Attendance locked for {payload.month}/{payload.year}",
        locked=locked,
    )


@router.post(
    "/classify",
    response_model=ClassifyResponse,
    status_code=status.HTTP_200_OK,
)
async def classify_attendance(
    db: DbSession, actor: CurrentActor, payload: ClassifyRequest
) -> ClassifyResponse:
    """Preview hours and status for a pair of timestamps.

    Uses the same classifier as mark/update, so the preview always matches
    what would be stored.
    """
    settings = await AttendanceService(db).get_settings()
    await db.commit()
    result = classify(
        to_utc_naive(payload.check_in),
        to_utc_naive(payload.check_out),
        settings,
        override=payload.status,
    )
    return ClassifyResponse(
        hours=result.hours,
        status=result.status.value if result.status else None,
    )


# ============================================================================
# Summaries
# ============================================================================


@router.get("/summary", response_model=StatusCountsResponse)
async def attendance_summary(
    db: DbSession,
    actor: CurrentActor,
    month: Annotated[int, Query(ge=1, le=12)],
    year: int,
    employee_id: UUID | None = None,
) -> StatusCountsResponse:
    """Raw per-status counts of stored records for a month."""
    counts = await AttendanceService(db).status_counts(actor, month, year, employee_id)
    return StatusCountsResponse.model_validate(counts)


@router.get("/calendar", response_model=MonthlySummaryResponse)
async def attendance_calendar(
    db: DbSession,
    actor: CurrentActor,
    month: Annotated[int, Query(ge=1, le=12)],
    year: int,
    employee_id: UUID | None = None,
) -> MonthlySummaryResponse:
    """Calendar counts with holidays, weekends and default-absent applied."""
    summary = await AttendanceService(db).monthly_summary(actor, month, year, employee_id)
    return MonthlySummaryResponse.model_validate(summary)
