"""SQLAlchemy repositories.

Timestamps are written in UTC; a naive value read back (SQLite stores no
offset) is taken as UTC. Derived rows are written with the dialect's native
``INSERT … ON CONFLICT DO UPDATE`` on their unique keys.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import AsyncIterator, Collection, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from jornadas.calendar.models import Holiday
from jornadas.calendar.schemas import HolidayEntry
from jornadas.common.pagination import KeysetCursor, keyset_after
from jornadas.compliance.models import ComplianceRecord, DailyPlanning
from jornadas.compliance.schemas import PlannedShift
from jornadas.identity.models import EmployeeIdentifier
from jornadas.identity.schemas import IdentifierLink
from jornadas.processing.models import InconsistencyFlagRecord, WorkDayRecord
from jornadas.processing.schemas import DayOutcome
from jornadas.sessions.models import Punch
from jornadas.sessions.schemas import RawPunch

logger = logging.getLogger(__name__)

# Rows per INSERT statement; keeps bound parameters under driver limits
UPSERT_BATCH_SIZE = 100


# ── Helpers ─────────────────────────────────────────────────────────


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise an instant to UTC; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def dialect_insert(db: AsyncSession, table):
    """``insert()`` of the session's dialect, with ``on_conflict_do_update``."""
    name = db.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(table)
    if name == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Upsert not supported for dialect {name!r}")


# ═════════════════════════════════════════════════════════════════════
# Readers
# ═════════════════════════════════════════════════════════════════════


class SqlPunchReader:
    """Keyset-paged reader over ``marcaciones``."""

    def __init__(self, db: AsyncSession, page_size: int = 1000) -> None:
        self.db = db
        self.page_size = page_size

    async def iter_punches(
        self,
        start: datetime,
        end: datetime,
        identifier_ids: Optional[Collection[str]] = None,
    ) -> AsyncIterator[RawPunch]:
        if identifier_ids is not None and not identifier_ids:
            return

        base = (
            sa.select(Punch)
            .where(Punch.timestamp >= as_utc(start), Punch.timestamp < as_utc(end))
            .order_by(Punch.timestamp, Punch.id)
            .limit(self.page_size)
        )
        if identifier_ids is not None:
            base = base.where(Punch.identifier_id.in_(sorted(identifier_ids)))

        cursor: Optional[KeysetCursor] = None
        while True:
            stmt = base
            after = keyset_after(Punch.timestamp, Punch.id, cursor)
            if after is not None:
                stmt = stmt.where(after)
            rows = (await self.db.execute(stmt)).scalars().all()
            for row in rows:
                yield RawPunch(
                    identifier_id=row.identifier_id,
                    event_type=row.event_type,
                    timestamp=as_utc(row.timestamp),
                )
            if len(rows) < self.page_size:
                break
            last = rows[-1]
            cursor = KeysetCursor(as_utc(last.timestamp), last.id)


class SqlIdentityReader:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_links(
        self,
        *,
        employee_ids: Optional[Collection[int]] = None,
        identifier_ids: Optional[Collection[str]] = None,
    ) -> list[IdentifierLink]:
        stmt = sa.select(EmployeeIdentifier).where(EmployeeIdentifier.is_active.is_(True))
        if employee_ids is not None:
            stmt = stmt.where(EmployeeIdentifier.employee_id.in_(sorted(employee_ids)))
        if identifier_ids is not None:
            stmt = stmt.where(EmployeeIdentifier.identifier_id.in_(sorted(identifier_ids)))
        rows = (await self.db.execute(stmt)).scalars().all()
        return [IdentifierLink.model_validate(row) for row in rows]


class SqlPlanReader:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_plans(
        self,
        date_from: date,
        date_to: date,
        employee_ids: Optional[Collection[int]] = None,
    ) -> list[PlannedShift]:
        stmt = sa.select(DailyPlanning).where(
            DailyPlanning.date >= date_from, DailyPlanning.date <= date_to
        )
        if employee_ids is not None:
            stmt = stmt.where(DailyPlanning.employee_id.in_(sorted(employee_ids)))
        rows = (await self.db.execute(stmt)).scalars().all()
        return [
            PlannedShift(
                employee_id=row.employee_id,
                date=row.date,
                status=row.status,
                absence_reason=row.absence_reason,
                planned_entry=as_utc(row.normal_entry_at),
                planned_exit=as_utc(row.normal_exit_at),
            )
            for row in rows
        ]


class SqlHolidayReader:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_holidays(self, date_from: date, date_to: date) -> list[HolidayEntry]:
        rows = (
            await self.db.execute(
                sa.select(Holiday)
                .where(Holiday.date >= date_from, Holiday.date <= date_to)
                .order_by(Holiday.date)
            )
        ).scalars().all()
        return [HolidayEntry.model_validate(row) for row in rows]


class SqlEmployeeReader:
    """Employees with an active identifier, or with a plan in the period."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_employee_ids(
        self,
        date_from: date,
        date_to: date,
        *,
        after: Optional[int] = None,
        limit: int = 200,
    ) -> list[int]:
        with_identifier = sa.select(EmployeeIdentifier.employee_id.label("employee_id")).where(
            EmployeeIdentifier.is_active.is_(True)
        )
        with_plan = sa.select(DailyPlanning.employee_id.label("employee_id")).where(
            DailyPlanning.date >= date_from, DailyPlanning.date <= date_to
        )
        employees = sa.union(with_identifier, with_plan).subquery()
        stmt = sa.select(employees.c.employee_id).order_by(employees.c.employee_id).limit(limit)
        if after is not None:
            stmt = stmt.where(employees.c.employee_id > after)
        return list((await self.db.execute(stmt)).scalars().all())


# ═════════════════════════════════════════════════════════════════════
# Store
# ═════════════════════════════════════════════════════════════════════


class SqlWorkDayStore:
    """Writes derived rows; the caller owns the transaction boundaries."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    # ── Row builders ────────────────────────────────────────────────

    @staticmethod
    def _work_day_row(outcome: DayOutcome, now: datetime) -> dict:
        session, hours = outcome.session, outcome.hours
        return dict(
            id=uuid.uuid4(),
            employee_id=outcome.employee_id,
            work_date=outcome.work_date,
            day_type=outcome.day_type,
            shift_letter=outcome.shift.value if outcome.shift else None,
            entry_at=as_utc(session.entry_at),
            exit_at=as_utc(session.exit_at),
            duration_hours=session.duration_hours,
            jornada_hours=outcome.jornada_hours,
            normal_hours=hours.normal_hours,
            extra_50_diurnal=hours.extra_50_diurnal,
            extra_50_nocturnal=hours.extra_50_nocturnal,
            extra_100_diurnal=hours.extra_100_diurnal,
            extra_100_nocturnal=hours.extra_100_nocturnal,
            normal_hours_displaced_to_100=hours.normal_hours_displaced_to_100,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def _compliance_row(outcome: DayOutcome, now: datetime) -> dict:
        result = outcome.compliance
        return dict(
            id=uuid.uuid4(),
            employee_id=result.employee_id,
            date=result.date,
            status=result.status,
            entry_ok=result.entry_ok,
            exit_ok=result.exit_ok,
            entry_delta_minutes=result.entry_delta_minutes,
            exit_delta_minutes=result.exit_delta_minutes,
            notes=result.notes,
            manual_override=False,
            created_at=now,
            updated_at=now,
        )

    # ── Writes ──────────────────────────────────────────────────────

    async def _upsert(
        self,
        model,
        rows: list[dict],
        index_elements: list[str],
        update_columns: list[str],
        where=None,
    ) -> None:
        for start in range(0, len(rows), UPSERT_BATCH_SIZE):
            stmt = dialect_insert(self.db, model).values(rows[start:start + UPSERT_BATCH_SIZE])
            stmt = stmt.on_conflict_do_update(
                index_elements=index_elements,
                set_={col: stmt.excluded[col] for col in update_columns},
                where=where,
            )
            await self.db.execute(stmt)

    async def replace_period(
        self,
        employee_ids: Sequence[int],
        date_from: date,
        date_to: date,
        outcomes: Sequence[DayOutcome],
    ) -> None:
        if not employee_ids:
            return
        ids = sorted(set(employee_ids))
        now = datetime.now(timezone.utc)

        # ── work days: delete the window, write it again ───────────
        await self.db.execute(
            sa.delete(WorkDayRecord).where(
                WorkDayRecord.employee_id.in_(ids),
                WorkDayRecord.work_date >= date_from,
                WorkDayRecord.work_date <= date_to,
            )
        )
        work_day_columns = [
            "day_type", "shift_letter", "entry_at", "exit_at", "duration_hours",
            "jornada_hours", "normal_hours", "extra_50_diurnal", "extra_50_nocturnal",
            "extra_100_diurnal", "extra_100_nocturnal", "normal_hours_displaced_to_100",
            "updated_at",
        ]
        await self._upsert(
            WorkDayRecord,
            [self._work_day_row(o, now) for o in outcomes if o.session is not None and o.hours],
            ["employee_id", "work_date"],
            work_day_columns,
        )

        # ── compliance: manual overrides survive re-runs ───────────
        await self.db.execute(
            sa.delete(ComplianceRecord).where(
                ComplianceRecord.employee_id.in_(ids),
                ComplianceRecord.date >= date_from,
                ComplianceRecord.date <= date_to,
                ComplianceRecord.manual_override.is_(False),
            )
        )
        compliance_columns = [
            "status", "entry_ok", "exit_ok", "entry_delta_minutes",
            "exit_delta_minutes", "notes", "updated_at",
        ]
        await self._upsert(
            ComplianceRecord,
            [self._compliance_row(o, now) for o in outcomes],
            ["employee_id", "date"],
            compliance_columns,
            where=ComplianceRecord.manual_override.is_(False),
        )

        await self._replace_flags(ids, date_from, date_to, outcomes, now)

    async def _replace_flags(
        self,
        ids: list[int],
        date_from: date,
        date_to: date,
        outcomes: Sequence[DayOutcome],
        now: datetime,
    ) -> None:
        flags = [flag for o in outcomes for flag in o.flags]
        produced = {(f.employee_id, f.work_date, f.flag_type.value) for f in flags}

        existing = (
            await self.db.execute(
                sa.select(
                    InconsistencyFlagRecord.id,
                    InconsistencyFlagRecord.employee_id,
                    InconsistencyFlagRecord.work_date,
                    InconsistencyFlagRecord.flag_type,
                ).where(
                    InconsistencyFlagRecord.employee_id.in_(ids),
                    InconsistencyFlagRecord.work_date >= date_from,
                    InconsistencyFlagRecord.work_date <= date_to,
                    InconsistencyFlagRecord.is_resolved.is_(False),
                )
            )
        ).all()
        stale = [
            row.id
            for row in existing
            if (row.employee_id, row.work_date, row.flag_type.value) not in produced
        ]
        if stale:
            await self.db.execute(
                sa.delete(InconsistencyFlagRecord).where(
                    InconsistencyFlagRecord.id.in_(stale)
                )
            )

        rows = [
            dict(
                id=uuid.uuid4(),
                employee_id=f.employee_id,
                work_date=f.work_date,
                flag_type=f.flag_type,
                detail=f.detail,
                occurred_at=as_utc(f.occurred_at),
                is_resolved=False,
                created_at=now,
                updated_at=now,
            )
            for f in flags
        ]
        await self._upsert(
            InconsistencyFlagRecord,
            rows,
            ["employee_id", "work_date", "flag_type"],
            ["detail", "occurred_at", "updated_at"],
        )
        if stale:
            logger.debug("Removed %d flags no longer produced", len(stale))
