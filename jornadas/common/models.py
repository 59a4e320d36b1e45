"""Shared ORM column helpers."""

from __future__ import annotations

import enum
from typing import Type

import sqlalchemy as sa


def enum_values(enum_cls: Type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def enum_type(enum_cls: Type[enum.Enum], name: str, length: int) -> sa.Enum:
    """Enum stored by value as VARCHAR, identical on PostgreSQL and SQLite."""
    return sa.Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=length,
        values_callable=enum_values,
        validate_strings=True,
    )
