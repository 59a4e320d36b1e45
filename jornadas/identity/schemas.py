"""Identity map schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class IdentifierLink(BaseModel):
    """One employee ↔ device identifier association."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    employee_id: int
    identifier_id: str = Field(..., min_length=1, max_length=64)


class IdentityConflict(BaseModel):
    """An identifier currently claimed by more than one employee."""

    model_config = ConfigDict(frozen=True)

    identifier_id: str
    employee_ids: tuple[int, ...]
