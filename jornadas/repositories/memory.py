"""In-memory repositories, for tests and dry runs."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import AsyncIterator, Collection, Iterable, Optional, Sequence

from jornadas.calendar.schemas import HolidayEntry
from jornadas.compliance.schemas import ComplianceResult, PlannedShift
from jornadas.identity.schemas import IdentifierLink
from jornadas.overtime.schemas import ClassifiedHours
from jornadas.processing.schemas import DayOutcome
from jornadas.sessions.resolver import punch_sort_key
from jornadas.sessions.schemas import InconsistencyFlag, RawPunch, WorkSession


class InMemoryPunchReader:
    def __init__(self, punches: Iterable[RawPunch] = (), page_size: int = 1000) -> None:
        self.punches = sorted(punches, key=punch_sort_key)
        self.page_size = page_size
        self.pages_read = 0

    async def iter_punches(
        self,
        start: datetime,
        end: datetime,
        identifier_ids: Optional[Collection[str]] = None,
    ) -> AsyncIterator[RawPunch]:
        wanted = set(identifier_ids) if identifier_ids is not None else None
        selected = [
            p
            for p in self.punches
            if start <= p.timestamp < end
            and (wanted is None or p.identifier_id in wanted)
        ]
        for offset in range(0, len(selected), self.page_size):
            self.pages_read += 1
            for punch in selected[offset:offset + self.page_size]:
                yield punch


class InMemoryIdentityReader:
    def __init__(self, links: Iterable[IdentifierLink] = ()) -> None:
        self.links = list(links)

    async def list_links(
        self,
        *,
        employee_ids: Optional[Collection[int]] = None,
        identifier_ids: Optional[Collection[str]] = None,
    ) -> list[IdentifierLink]:
        return [
            link
            for link in self.links
            if (employee_ids is None or link.employee_id in employee_ids)
            and (identifier_ids is None or link.identifier_id in identifier_ids)
        ]


class InMemoryPlanReader:
    def __init__(self, plans: Iterable[PlannedShift] = ()) -> None:
        self.plans = list(plans)

    async def list_plans(
        self,
        date_from: date,
        date_to: date,
        employee_ids: Optional[Collection[int]] = None,
    ) -> list[PlannedShift]:
        return [
            plan
            for plan in self.plans
            if date_from <= plan.date <= date_to
            and (employee_ids is None or plan.employee_id in employee_ids)
        ]


class InMemoryHolidayReader:
    def __init__(self, holidays: Iterable[HolidayEntry] = ()) -> None:
        self.holidays = list(holidays)

    async def list_holidays(self, date_from: date, date_to: date) -> list[HolidayEntry]:
        return [h for h in self.holidays if date_from <= h.date <= date_to]


class InMemoryEmployeeReader:
    """Employee ids from identifier links and plans."""

    def __init__(
        self,
        identity: InMemoryIdentityReader,
        plans: InMemoryPlanReader,
    ) -> None:
        self.identity = identity
        self.plans = plans

    async def list_employee_ids(
        self,
        date_from: date,
        date_to: date,
        *,
        after: Optional[int] = None,
        limit: int = 200,
    ) -> list[int]:
        ids = {link.employee_id for link in self.identity.links}
        ids |= {
            plan.employee_id
            for plan in self.plans.plans
            if date_from <= plan.date <= date_to
        }
        ordered = sorted(i for i in ids if after is None or i > after)
        return ordered[:limit]


# ── Store ───────────────────────────────────────────────────────────


@dataclass
class StoredWorkDay:
    session: WorkSession
    hours: ClassifiedHours
    day_type: str
    jornada_hours: float


@dataclass
class StoredFlag:
    flag: InconsistencyFlag
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    is_resolved: bool = False
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_note: Optional[str] = None


class InMemoryWorkDayStore:
    """Keeps derived rows in dicts; commit/rollback snapshot the state."""

    def __init__(self) -> None:
        self.work_days: dict[tuple[int, date], StoredWorkDay] = {}
        self.compliance: dict[tuple[int, date], ComplianceResult] = {}
        self.flags: dict[tuple[int, date, str], StoredFlag] = {}
        self.commits = 0
        self._snapshot = self._copy()

    def _copy(self) -> tuple[dict, dict, dict]:
        return dict(self.work_days), dict(self.compliance), dict(self.flags)

    async def replace_period(
        self,
        employee_ids: Sequence[int],
        date_from: date,
        date_to: date,
        outcomes: Sequence[DayOutcome],
    ) -> None:
        employees = set(employee_ids)

        def in_scope(key: tuple) -> bool:
            return key[0] in employees and date_from <= key[1] <= date_to

        self.work_days = {k: v for k, v in self.work_days.items() if not in_scope(k)}
        self.compliance = {k: v for k, v in self.compliance.items() if not in_scope(k)}

        produced: set[tuple[int, date, str]] = set()
        for outcome in outcomes:
            key = (outcome.employee_id, outcome.work_date)
            if outcome.session is not None and outcome.hours is not None:
                self.work_days[key] = StoredWorkDay(
                    session=outcome.session,
                    hours=outcome.hours,
                    day_type=outcome.day_type.value,
                    jornada_hours=outcome.jornada_hours,
                )
            self.compliance[key] = outcome.compliance
            for flag in outcome.flags:
                flag_key = (flag.employee_id, flag.work_date, flag.flag_type.value)
                produced.add(flag_key)
                existing = self.flags.get(flag_key)
                if existing is None:
                    self.flags[flag_key] = StoredFlag(flag=flag)
                else:
                    self.flags[flag_key] = replace(existing, flag=flag)

        self.flags = {
            k: v
            for k, v in self.flags.items()
            if not in_scope(k) or k in produced or v.is_resolved
        }

    async def resolve_flag(
        self,
        flag_id: uuid.UUID,
        resolved_by: str,
        note: Optional[str] = None,
    ) -> Optional[StoredFlag]:
        for stored in self.flags.values():
            if stored.id == flag_id:
                stored.is_resolved = True
                stored.resolved_by = resolved_by
                stored.resolved_at = datetime.now(timezone.utc)
                stored.resolution_note = note
                return stored
        return None

    async def commit(self) -> None:
        self.commits += 1
        self._snapshot = self._copy()

    async def rollback(self) -> None:
        self.work_days, self.compliance, self.flags = self._snapshot
