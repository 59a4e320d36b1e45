"""Raw punch ORM model (``marcaciones``), written by the clock sync."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from jornadas.common.constants import PunchType
from jornadas.common.models import enum_type
from jornadas.database import Base


class Punch(Base):
    __tablename__ = "marcaciones"
    __table_args__ = (
        sa.Index("ix_marcaciones_timestamp_id", "timestamp", "id"),
    )

    id: Mapped[int] = mapped_column(
        sa.BigInteger().with_variant(sa.Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    identifier_id: Mapped[str] = mapped_column(
        sa.String(64), nullable=False, index=True
    )
    event_type: Mapped[PunchType] = mapped_column(
        enum_type(PunchType, "punch_type", 1), nullable=False
    )
    timestamp: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )
    device_id: Mapped[Optional[str]] = mapped_column(sa.String(50))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
