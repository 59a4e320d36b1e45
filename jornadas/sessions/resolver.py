"""Shift assignment: pair raw punches into work sessions.

The scan is an explicit two-state machine:

    AWAITING_ENTRY --ENTRY--> AWAITING_EXIT
    AWAITING_EXIT  --ENTRY--> AWAITING_EXIT   (duplicate entry ignored, first wins)
    AWAITING_EXIT  --EXIT---> AWAITING_ENTRY  (session closed, or discarded as noise)
    AWAITING_ENTRY --EXIT---> AWAITING_ENTRY  (missing-entry flag, zero credit)

A session closed successfully belongs to the civil date of its entry, so a
night shift that starts before midnight is credited entirely to the day it
began. Data problems never raise: they become flags or discards.

Every punch is also attributed to a date for compliance: punches read while
a pairing is open go to the date of its entry, a lone exit to its own date.
"""

from __future__ import annotations

import enum
import logging
from datetime import date, datetime
from typing import Callable, Iterable, Optional
from zoneinfo import ZoneInfo

from jornadas.common.constants import (
    MAX_SESSION_HOURS,
    InconsistencyType,
    MissingExitPolicy,
    PunchType,
)
from jornadas.common.timeutils import hours_between, local_date
from jornadas.sessions.schemas import (
    DayPunches,
    DiscardedPairing,
    InconsistencyFlag,
    RawPunch,
    ResolutionResult,
    WorkSession,
)

logger = logging.getLogger(__name__)

# ENTRY sorts before EXIT when two punches share an instant
_EVENT_ORDER = {PunchType.entry: 0, PunchType.exit: 1}


class PairingState(enum.Enum):
    AWAITING_ENTRY = "awaiting_entry"
    AWAITING_EXIT = "awaiting_exit"


def punch_sort_key(punch: RawPunch) -> tuple[datetime, str, int]:
    """Total order over punches; ties on the instant are broken deterministically."""
    return (punch.timestamp, punch.identifier_id, _EVENT_ORDER[punch.event_type])


class ShiftAssignmentResolver:
    """Pairs one employee's punches into :class:`WorkSession` records."""

    def __init__(
        self,
        tz: ZoneInfo,
        jornada_for: Callable[[date], float],
        *,
        max_session_hours: float = MAX_SESSION_HOURS,
        missing_exit_policy: MissingExitPolicy = MissingExitPolicy.optimistic,
    ) -> None:
        self.tz = tz
        self.jornada_for = jornada_for
        self.max_session_hours = max_session_hours
        self.missing_exit_policy = missing_exit_policy

    # ── Helpers ─────────────────────────────────────────────────────

    def _missing_exit_credit(self, work_date: date) -> float:
        if self.missing_exit_policy == MissingExitPolicy.zero:
            return 0.0
        return self.jornada_for(work_date)

    def _is_valid_duration(self, hours: float) -> bool:
        return 0 < hours <= self.max_session_hours

    # ── Scan ────────────────────────────────────────────────────────

    def resolve(
        self,
        employee_id: int,
        punches: Iterable[RawPunch],
        *,
        date_from: date,
        date_to: date,
    ) -> ResolutionResult:
        """Scan *punches* in order and keep what falls in ``[date_from, date_to]``.

        Punches may come from several identifiers of the same employee and
        from a window padded around the period; attribution by entry date
        decides which sessions belong to the period.
        """

        def in_period(day: date) -> bool:
            return date_from <= day <= date_to

        sessions: list[WorkSession] = []
        flags: list[InconsistencyFlag] = []
        discarded: list[DiscardedPairing] = []
        ignored_entries = 0
        punches_by_date: dict[date, list[Optional[datetime]]] = {}

        def attribute(day: date, *, entry: Optional[datetime] = None,
                      exit_: Optional[datetime] = None) -> None:
            # Punches arrive in order: first entry sticks, last exit overwrites
            if not in_period(day):
                return
            span = punches_by_date.setdefault(day, [None, None])
            if entry is not None and span[0] is None:
                span[0] = entry
            if exit_ is not None:
                span[1] = exit_

        state = PairingState.AWAITING_ENTRY
        open_entry: Optional[datetime] = None

        for punch in sorted(punches, key=punch_sort_key):
            if punch.event_type == PunchType.entry:
                if state == PairingState.AWAITING_ENTRY:
                    open_entry = punch.timestamp
                    state = PairingState.AWAITING_EXIT
                    attribute(local_date(open_entry, self.tz), entry=open_entry)
                else:
                    ignored_entries += 1
                    logger.debug(
                        "Employee %s: duplicate entry at %s ignored (open since %s)",
                        employee_id, punch.timestamp.isoformat(), open_entry.isoformat(),
                    )
                continue

            # EXIT
            if state == PairingState.AWAITING_ENTRY:
                exit_date = local_date(punch.timestamp, self.tz)
                attribute(exit_date, exit_=punch.timestamp)
                if in_period(exit_date):
                    flags.append(
                        InconsistencyFlag(
                            employee_id=employee_id,
                            work_date=exit_date,
                            flag_type=InconsistencyType.missing_entry,
                            detail="Exit punch without a preceding entry",
                            occurred_at=punch.timestamp,
                        )
                    )
                continue

            entry_at = open_entry
            exit_at = punch.timestamp
            state = PairingState.AWAITING_ENTRY
            open_entry = None
            attribute(local_date(entry_at, self.tz), exit_=exit_at)

            hours = hours_between(entry_at, exit_at)
            if not self._is_valid_duration(hours):
                logger.debug(
                    "Employee %s: pairing %s → %s discarded (%.2fh)",
                    employee_id, entry_at.isoformat(), exit_at.isoformat(), hours,
                )
                discarded.append(
                    DiscardedPairing(
                        employee_id=employee_id,
                        entry_at=entry_at,
                        exit_at=exit_at,
                        duration_hours=round(hours, 2),
                    )
                )
                continue

            work_date = local_date(entry_at, self.tz)
            if not in_period(work_date):
                continue

            sessions.append(
                WorkSession(
                    employee_id=employee_id,
                    work_date=work_date,
                    entry_at=entry_at,
                    exit_at=exit_at,
                    duration_hours=round(hours, 2),
                )
            )

        if state == PairingState.AWAITING_EXIT:
            work_date = local_date(open_entry, self.tz)
            if in_period(work_date):
                credit = self._missing_exit_credit(work_date)
                sessions.append(
                    WorkSession(
                        employee_id=employee_id,
                        work_date=work_date,
                        entry_at=open_entry,
                        exit_at=None,
                        duration_hours=credit,
                    )
                )
                flags.append(
                    InconsistencyFlag(
                        employee_id=employee_id,
                        work_date=work_date,
                        flag_type=InconsistencyType.missing_exit,
                        detail=f"Entry without exit; credited {credit:g}h",
                        occurred_at=open_entry,
                    )
                )

        return ResolutionResult(
            employee_id=employee_id,
            sessions=sessions,
            flags=flags,
            discarded=discarded,
            day_punches=[
                DayPunches(work_date=day, first_entry=first_entry, last_exit=last_exit)
                for day, (first_entry, last_exit) in sorted(punches_by_date.items())
            ],
            ignored_entries=ignored_entries,
        )
