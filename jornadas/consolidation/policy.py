"""Consolidation: at most one session per ``(employee_id, work_date)``.

Preference between competing sessions:

  1. a complete session beats one without exit
  2. between complete sessions, the longer one wins
  3. remaining ties go to the earlier entry

The ranking is a total order, so the survivor never depends on the order
the sessions arrive in. Every collision is also reported as a
``duplicate-session`` flag so a human can review the dropped sessions.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Iterable

from jornadas.common.constants import InconsistencyType
from jornadas.consolidation.schemas import ConsolidationResult, SessionCollision
from jornadas.sessions.schemas import InconsistencyFlag, WorkSession

logger = logging.getLogger(__name__)


def _preference(session: WorkSession) -> tuple:
    """Sort key; the smallest key is the preferred session."""
    duration = session.duration_hours if session.is_complete else 0.0
    return (not session.is_complete, -duration, session.entry_at)


def _describe(session: WorkSession) -> str:
    exit_text = session.exit_at.isoformat() if session.exit_at else "open"
    return f"{session.entry_at.isoformat()} → {exit_text}"


def consolidate_sessions(sessions: Iterable[WorkSession]) -> ConsolidationResult:
    """Keep one session per key; report what was dropped."""
    by_key: dict[tuple[int, date], list[WorkSession]] = defaultdict(list)
    for session in sessions:
        by_key[(session.employee_id, session.work_date)].append(session)

    kept: list[WorkSession] = []
    collisions: list[SessionCollision] = []
    flags: list[InconsistencyFlag] = []

    for key in sorted(by_key):
        candidates = sorted(by_key[key], key=_preference)
        winner, losers = candidates[0], candidates[1:]
        kept.append(winner)
        if not losers:
            continue

        employee_id, work_date = key
        collisions.append(
            SessionCollision(
                employee_id=employee_id,
                work_date=work_date,
                kept=winner,
                dropped=losers,
            )
        )
        flags.append(
            InconsistencyFlag(
                employee_id=employee_id,
                work_date=work_date,
                flag_type=InconsistencyType.duplicate_session,
                detail=(
                    f"{len(candidates)} sessions on this day; kept {_describe(winner)}, "
                    f"dropped {', '.join(_describe(s) for s in losers)}"
                ),
                occurred_at=winner.entry_at,
            )
        )
        logger.info(
            "Employee %s on %s: %d sessions collided, kept entry at %s",
            employee_id, work_date.isoformat(), len(candidates),
            winner.entry_at.isoformat(),
        )

    return ConsolidationResult(sessions=kept, collisions=collisions, flags=flags)
