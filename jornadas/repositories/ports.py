"""Repository interfaces consumed by the recomputation service.

Upstream data (punches, identifiers, plans, holidays) is read-only here;
derived rows go through :class:`WorkDayStore`. Two implementations ship:
``repositories.sql`` (SQLAlchemy) and ``repositories.memory`` (tests, dry runs).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import AsyncIterator, Collection, Optional, Protocol, Sequence

from jornadas.calendar.schemas import HolidayEntry
from jornadas.compliance.schemas import PlannedShift
from jornadas.identity.schemas import IdentifierLink
from jornadas.processing.schemas import DayOutcome
from jornadas.sessions.schemas import RawPunch


class PunchReader(Protocol):
    def iter_punches(
        self,
        start: datetime,
        end: datetime,
        identifier_ids: Optional[Collection[str]] = None,
    ) -> AsyncIterator[RawPunch]:
        """Punches with ``start <= timestamp < end`` in ``(timestamp, id)`` order."""
        ...


class IdentityReader(Protocol):
    async def list_links(
        self,
        *,
        employee_ids: Optional[Collection[int]] = None,
        identifier_ids: Optional[Collection[str]] = None,
    ) -> list[IdentifierLink]:
        ...


class PlanReader(Protocol):
    async def list_plans(
        self,
        date_from: date,
        date_to: date,
        employee_ids: Optional[Collection[int]] = None,
    ) -> list[PlannedShift]:
        ...


class HolidayReader(Protocol):
    async def list_holidays(self, date_from: date, date_to: date) -> list[HolidayEntry]:
        ...


class EmployeeReader(Protocol):
    async def list_employee_ids(
        self,
        date_from: date,
        date_to: date,
        *,
        after: Optional[int] = None,
        limit: int = 200,
    ) -> list[int]:
        """Employees with identifiers or plans, ascending, strictly after *after*."""
        ...


class WorkDayStore(Protocol):
    async def replace_period(
        self,
        employee_ids: Sequence[int],
        date_from: date,
        date_to: date,
        outcomes: Sequence[DayOutcome],
    ) -> None:
        """Make stored rows of these employees/period equal to *outcomes*.

        Resolved flags that are produced again stay resolved; unresolved
        flags that are no longer produced are removed.
        """
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...

