"""Processing service layer — period recomputation and derived-data queries.

Business logic:
  - Recompute a window of days ("regenerar"): employees are processed in
    fixed-size pages, each page loaded, derived and committed on its own
  - Shard a run by employee id; resume a stopped run from its cursor
  - Half-month ("quincena") periods: 1–15 and 16–end of month
  - Read stored work days, compliance and inconsistency flags
  - Resolve an inconsistency flag
"""

from __future__ import annotations

import calendar
import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jornadas.common.exceptions import (
    ConflictError,
    NotFoundException,
    ProcessingError,
    ValidationException,
)
from jornadas.common.pagination import PaginationMeta, PaginationParams, paginate
from jornadas.common.timeutils import padded_window
from jornadas.compliance.models import ComplianceRecord
from jornadas.config import Settings
from jornadas.processing.models import InconsistencyFlagRecord, WorkDayRecord
from jornadas.processing.pipeline import run_pipeline, shard_of
from jornadas.processing.schemas import (
    ComplianceResponse,
    DayOutcome,
    FlagResponse,
    PipelineInputs,
    ProcessingReport,
    WorkDayResponse,
)
from jornadas.repositories.ports import (
    EmployeeReader,
    HolidayReader,
    IdentityReader,
    PlanReader,
    PunchReader,
    WorkDayStore,
)
from jornadas.repositories.sql import (
    SqlEmployeeReader,
    SqlHolidayReader,
    SqlIdentityReader,
    SqlPlanReader,
    SqlPunchReader,
    SqlWorkDayStore,
)

logger = logging.getLogger(__name__)


# ── Period helpers ──────────────────────────────────────────────────

def half_month_period(year: int, month: int, half: int) -> tuple[date, date]:
    """First half is days 1–15; second half runs from the 16th to month end."""
    if half not in (1, 2):
        raise ValidationException({"half": ["Half must be 1 or 2."]})
    if half == 1:
        return date(year, month, 1), date(year, month, 15)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 16), date(year, month, last_day)


def validate_period(date_from: date, date_to: date, max_days: int) -> None:
    if date_from > date_to:
        raise ValidationException(
            {"date_to": ["date_to must be on or after date_from."]}
        )
    if (date_to - date_from).days + 1 > max_days:
        raise ValidationException(
            {"date_to": [f"Period cannot exceed {max_days} days."]}
        )


def parse_shard(value: str) -> tuple[int, int]:
    """``"i/n"`` → ``(i, n)`` with ``0 <= i < n``."""
    try:
        index_text, count_text = value.split("/")
        index, count = int(index_text), int(count_text)
    except ValueError:
        raise ValidationException({"shard": ["Shard must look like 'i/n'."]})
    if count < 1 or not 0 <= index < count:
        raise ValidationException({"shard": ["Shard index must satisfy 0 <= i < n."]})
    return index, count


# ═════════════════════════════════════════════════════════════════════
# PeriodRecomputer
# ═════════════════════════════════════════════════════════════════════


class PeriodRecomputer:
    """Drives the pure pipeline over paginated readers and commits per page."""

    def __init__(
        self,
        *,
        punches: PunchReader,
        identity: IdentityReader,
        plans: PlanReader,
        holidays: HolidayReader,
        employees: EmployeeReader,
        store: WorkDayStore,
        settings: Settings,
    ) -> None:
        self.punches = punches
        self.identity = identity
        self.plans = plans
        self.holidays = holidays
        self.employees = employees
        self.store = store
        self.settings = settings

    @classmethod
    def for_session(cls, db: AsyncSession, settings: Settings) -> PeriodRecomputer:
        """Wire the SQLAlchemy repositories on one session."""
        return cls(
            punches=SqlPunchReader(db, page_size=settings.PUNCH_PAGE_SIZE),
            identity=SqlIdentityReader(db),
            plans=SqlPlanReader(db),
            holidays=SqlHolidayReader(db),
            employees=SqlEmployeeReader(db),
            store=SqlWorkDayStore(db),
            settings=settings,
        )

    # ── Helpers ─────────────────────────────────────────────────────

    def _today(self) -> date:
        return datetime.now(self.settings.tz).date()

    async def _next_page(
        self,
        date_from: date,
        date_to: date,
        after: Optional[int],
        employee_ids: Optional[Sequence[int]],
    ) -> list[int]:
        size = self.settings.EMPLOYEE_PAGE_SIZE
        if employee_ids is not None:
            ordered = sorted(e for e in set(employee_ids) if after is None or e > after)
            return ordered[:size]
        return await self.employees.list_employee_ids(
            date_from, date_to, after=after, limit=size
        )

    async def _derive_page(
        self,
        employee_ids: list[int],
        date_from: date,
        date_to: date,
        as_of: date,
    ) -> tuple[ProcessingReport, list[DayOutcome]]:
        links = await self.identity.list_links(employee_ids=employee_ids)
        identifier_ids = {link.identifier_id for link in links}
        # Every claim on those identifiers, so shared ones surface as conflicts
        claims = (
            await self.identity.list_links(identifier_ids=identifier_ids)
            if identifier_ids
            else []
        )

        start, end = padded_window(date_from, date_to, self.settings.tz)
        punches = [
            punch
            async for punch in self.punches.iter_punches(start, end, identifier_ids)
        ]
        plans = await self.plans.list_plans(date_from, date_to, employee_ids)
        holidays = await self.holidays.list_holidays(
            date_from - timedelta(days=1), date_to + timedelta(days=1)
        )

        result = run_pipeline(
            PipelineInputs(
                date_from=date_from,
                date_to=date_to,
                punches=punches,
                links=claims,
                plans=plans,
                holidays=holidays,
                employee_ids=employee_ids,
                as_of=as_of,
            ),
            self.settings,
        )
        return result.report, result.outcomes

    # ── Public API ──────────────────────────────────────────────────

    async def regenerate_period(
        self,
        date_from: date,
        date_to: date,
        *,
        employee_ids: Optional[Sequence[int]] = None,
        shard: Optional[tuple[int, int]] = None,
        start_after: Optional[int] = None,
        max_pages: Optional[int] = None,
        as_of: Optional[date] = None,
        dry_run: bool = False,
    ) -> ProcessingReport:
        """Recompute every key in ``[date_from, date_to]``.

        The returned report carries ``next_cursor`` (last employee id of the
        last page handled); pass it as *start_after* to resume a run cut
        short by *max_pages*.
        """
        validate_period(date_from, date_to, self.settings.MAX_PERIOD_DAYS)
        as_of = as_of or self._today()
        report = ProcessingReport(
            date_from=date_from,
            date_to=date_to,
            next_cursor=start_after,
            dry_run=dry_run,
        )
        logger.info(
            "Recomputing %s → %s (shard=%s, start_after=%s, dry_run=%s)",
            date_from.isoformat(), date_to.isoformat(), shard, start_after, dry_run,
        )

        cursor = start_after
        while max_pages is None or report.pages < max_pages:
            page = await self._next_page(date_from, date_to, cursor, employee_ids)
            if not page:
                report.completed = True
                break

            selected = [
                e for e in page if shard is None or shard_of(e, shard[1]) == shard[0]
            ]
            if selected:
                page_report, outcomes = await self._derive_page(
                    selected, date_from, date_to, as_of
                )
                if not dry_run:
                    try:
                        await self.store.replace_period(
                            selected, date_from, date_to, outcomes
                        )
                        await self.store.commit()
                    except Exception as exc:
                        await self.store.rollback()
                        logger.error(
                            "Page after employee %s failed to persist: %s", cursor, exc
                        )
                        raise ProcessingError(
                            None,
                            f"Could not persist employees {selected[0]}–{selected[-1]}: {exc}",
                        ) from exc
                report.absorb(page_report)

            cursor = page[-1]
            report.pages += 1
            report.next_cursor = cursor
            logger.info(
                "Page %d done: %d employees (%d in shard), cursor=%s",
                report.pages, len(page), len(selected), cursor,
            )

            if len(page) < self.settings.EMPLOYEE_PAGE_SIZE:
                report.completed = True
                break

        for error in report.errors:
            logger.warning(
                "Employee %s not processed: %s: %s",
                error.employee_id, error.error_type, error.detail,
            )
        logger.info(
            "Recomputed %d keys for %d employees (%d flags, %d errors)",
            report.processed_keys, report.employees_processed,
            report.flags, len(report.errors),
        )
        return report

    async def process_day(self, day: date, **kwargs) -> ProcessingReport:
        """Recompute a single day."""
        return await self.regenerate_period(day, day, **kwargs)

    async def regenerate_half_month(
        self,
        year: int,
        month: int,
        half: int,
        **kwargs,
    ) -> ProcessingReport:
        date_from, date_to = half_month_period(year, month, half)
        return await self.regenerate_period(date_from, date_to, **kwargs)


# ═════════════════════════════════════════════════════════════════════
# ProcessingService — reads and flag resolution
# ═════════════════════════════════════════════════════════════════════


class ProcessingService:
    """Async reads over derived rows."""

    @staticmethod
    async def list_work_days(
        db: AsyncSession,
        date_from: date,
        date_to: date,
        params: PaginationParams,
        *,
        employee_id: Optional[int] = None,
    ) -> tuple[list[WorkDayResponse], PaginationMeta]:
        query = (
            select(WorkDayRecord)
            .where(WorkDayRecord.work_date >= date_from, WorkDayRecord.work_date <= date_to)
            .order_by(WorkDayRecord.employee_id, WorkDayRecord.work_date)
        )
        if employee_id is not None:
            query = query.where(WorkDayRecord.employee_id == employee_id)
        rows, meta = await paginate(db, query, params)
        return [WorkDayResponse.model_validate(r) for r in rows], meta

    @staticmethod
    async def list_compliance(
        db: AsyncSession,
        date_from: date,
        date_to: date,
        params: PaginationParams,
        *,
        employee_id: Optional[int] = None,
    ) -> tuple[list[ComplianceResponse], PaginationMeta]:
        query = (
            select(ComplianceRecord)
            .where(ComplianceRecord.date >= date_from, ComplianceRecord.date <= date_to)
            .order_by(ComplianceRecord.employee_id, ComplianceRecord.date)
        )
        if employee_id is not None:
            query = query.where(ComplianceRecord.employee_id == employee_id)
        rows, meta = await paginate(db, query, params)
        return [ComplianceResponse.model_validate(r) for r in rows], meta

    @staticmethod
    async def list_flags(
        db: AsyncSession,
        date_from: date,
        date_to: date,
        params: PaginationParams,
        *,
        include_resolved: bool = False,
        employee_id: Optional[int] = None,
    ) -> tuple[list[FlagResponse], PaginationMeta]:
        query = (
            select(InconsistencyFlagRecord)
            .where(
                InconsistencyFlagRecord.work_date >= date_from,
                InconsistencyFlagRecord.work_date <= date_to,
            )
            .order_by(
                InconsistencyFlagRecord.employee_id,
                InconsistencyFlagRecord.work_date,
                InconsistencyFlagRecord.flag_type,
            )
        )
        if not include_resolved:
            query = query.where(InconsistencyFlagRecord.is_resolved.is_(False))
        if employee_id is not None:
            query = query.where(InconsistencyFlagRecord.employee_id == employee_id)
        rows, meta = await paginate(db, query, params)
        return [FlagResponse.model_validate(r) for r in rows], meta

    @staticmethod
    async def resolve_flag(
        db: AsyncSession,
        flag_id: uuid.UUID,
        resolved_by: str,
        note: Optional[str] = None,
    ) -> FlagResponse:
        """Mark a flag as reviewed. A later re-run keeps it resolved."""
        flag = await db.get(InconsistencyFlagRecord, flag_id)
        if flag is None:
            raise NotFoundException("InconsistencyFlag", flag_id)
        if flag.is_resolved:
            raise ConflictError(
                "flag_id",
                flag_id,
                detail=f"InconsistencyFlag with id '{flag_id}' is already resolved.",
            )

        now = datetime.now(timezone.utc)
        flag.is_resolved = True
        flag.resolved_by = resolved_by
        flag.resolved_at = now
        flag.resolution_note = note
        flag.updated_at = now
        await db.flush()
        await db.refresh(flag)
        logger.info("Flag %s resolved by %s", flag_id, resolved_by)
        return FlagResponse.model_validate(flag)
