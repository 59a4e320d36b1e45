"""Calendar schemas: holiday entries and day-type context."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from jornadas.common.constants import DayType


class HolidayEntry(BaseModel):
    """A calendar holiday as supplied by the holiday feed."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    date: date
    name: Optional[str] = Field(None, max_length=150)
    is_workable: bool = False


class DayTypeContext(BaseModel):
    """Day classification for one civil date."""

    model_config = ConfigDict(frozen=True)

    date: date
    weekday: int = Field(..., ge=0, le=6, description="Monday=0 … Sunday=6")
    is_holiday: bool
    day_type: DayType
