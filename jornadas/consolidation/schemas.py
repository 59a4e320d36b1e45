"""Consolidation schemas."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from jornadas.sessions.schemas import InconsistencyFlag, WorkSession


class SessionCollision(BaseModel):
    """Several sessions competed for one ``(employee_id, work_date)`` key."""

    model_config = ConfigDict(frozen=True)

    employee_id: int
    work_date: date
    kept: WorkSession
    dropped: list[WorkSession] = Field(default_factory=list)


class ConsolidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    sessions: list[WorkSession] = Field(default_factory=list)
    collisions: list[SessionCollision] = Field(default_factory=list)
    flags: list[InconsistencyFlag] = Field(default_factory=list)
