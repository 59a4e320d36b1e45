"""Processing router — recomputation triggers and derived-data reads.

Recomputation endpoints are rate limited; they run synchronously within
the request and return the run report.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from jornadas.common.pagination import PaginationMeta, PaginationParams
from jornadas.common.rate_limit import limiter
from jornadas.config import settings
from jornadas.database import get_db
from jornadas.processing.schemas import (
    ComplianceResponse,
    DayRequest,
    FlagResolveRequest,
    FlagResponse,
    HalfMonthRequest,
    ProcessingReport,
    RegenerateRequest,
    WorkDayResponse,
)
from jornadas.processing.service import (
    PeriodRecomputer,
    ProcessingService,
    validate_period,
)

router = APIRouter(prefix="", tags=["processing"])


class WorkDayListResponse(BaseModel):
    data: list[WorkDayResponse]
    meta: PaginationMeta


class ComplianceListResponse(BaseModel):
    data: list[ComplianceResponse]
    meta: PaginationMeta


class FlagListResponse(BaseModel):
    data: list[FlagResponse]
    meta: PaginationMeta


# ── POST /regenerate ────────────────────────────────────────────────

@router.post("/regenerate", response_model=ProcessingReport)
@limiter.limit(settings.PROCESSING_RATE_LIMIT)
async def regenerate(
    request: Request,
    body: RegenerateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Recompute work days, compliance and flags for a date window."""
    return await PeriodRecomputer.for_session(db, settings).regenerate_period(
        body.date_from,
        body.date_to,
        employee_ids=body.employee_ids,
        dry_run=body.dry_run,
    )


# ── POST /day ───────────────────────────────────────────────────────

@router.post("/day", response_model=ProcessingReport)
@limiter.limit(settings.PROCESSING_RATE_LIMIT)
async def process_day(
    request: Request,
    body: DayRequest,
    db: AsyncSession = Depends(get_db),
):
    """Recompute a single day."""
    return await PeriodRecomputer.for_session(db, settings).process_day(
        body.date,
        employee_ids=body.employee_ids,
        dry_run=body.dry_run,
    )


# ── POST /half-month ────────────────────────────────────────────────

@router.post("/half-month", response_model=ProcessingReport)
@limiter.limit(settings.PROCESSING_RATE_LIMIT)
async def process_half_month(
    request: Request,
    body: HalfMonthRequest,
    db: AsyncSession = Depends(get_db),
):
    """Recompute a payroll half-month (1–15 or 16–end)."""
    return await PeriodRecomputer.for_session(db, settings).regenerate_half_month(
        body.year, body.month, body.half, dry_run=body.dry_run,
    )


# ── GET /work-days ──────────────────────────────────────────────────

@router.get("/work-days", response_model=WorkDayListResponse)
async def list_work_days(
    from_date: date = Query(...),
    to_date: date = Query(...),
    employee_id: Optional[int] = Query(None),
    params: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Stored classified work days in a date range."""
    validate_period(from_date, to_date, settings.MAX_PERIOD_DAYS)
    data, meta = await ProcessingService.list_work_days(
        db, from_date, to_date, params, employee_id=employee_id,
    )
    return WorkDayListResponse(data=data, meta=meta)


# ── GET /compliance ─────────────────────────────────────────────────

@router.get("/compliance", response_model=ComplianceListResponse)
async def list_compliance(
    from_date: date = Query(...),
    to_date: date = Query(...),
    employee_id: Optional[int] = Query(None),
    params: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Stored compliance results in a date range."""
    validate_period(from_date, to_date, settings.MAX_PERIOD_DAYS)
    data, meta = await ProcessingService.list_compliance(
        db, from_date, to_date, params, employee_id=employee_id,
    )
    return ComplianceListResponse(data=data, meta=meta)


# ── GET /flags ──────────────────────────────────────────────────────

@router.get("/flags", response_model=FlagListResponse)
async def list_flags(
    from_date: date = Query(...),
    to_date: date = Query(...),
    include_resolved: bool = Query(False),
    employee_id: Optional[int] = Query(None),
    params: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Inconsistency flags in a date range (open ones unless asked otherwise)."""
    validate_period(from_date, to_date, settings.MAX_PERIOD_DAYS)
    data, meta = await ProcessingService.list_flags(
        db,
        from_date,
        to_date,
        params,
        include_resolved=include_resolved,
        employee_id=employee_id,
    )
    return FlagListResponse(data=data, meta=meta)


# ── POST /flags/{flag_id}/resolve ───────────────────────────────────

@router.post("/flags/{flag_id}/resolve", response_model=FlagResponse)
async def resolve_flag(
    flag_id: uuid.UUID,
    body: FlagResolveRequest,
    db: AsyncSession = Depends(get_db),
):
    """Mark a flag as reviewed."""
    return await ProcessingService.resolve_flag(
        db, flag_id, body.resolved_by, body.note,
    )
