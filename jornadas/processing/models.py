"""Derived ORM models: WorkDayRecord, InconsistencyFlagRecord.

Both are rewritten by every recomputation of their period; a row is keyed
by ``(employee_id, work_date)`` (plus ``flag_type`` for flags).
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from jornadas.common.constants import DayType, InconsistencyType
from jornadas.common.models import enum_type
from jornadas.database import Base


def _hours_column() -> Mapped[float]:
    return mapped_column(sa.Numeric(5, 2, asdecimal=False), nullable=False, default=0)


class WorkDayRecord(Base):
    __tablename__ = "work_days"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "work_date", name="uq_work_day_emp_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[int] = mapped_column(sa.Integer, nullable=False, index=True)
    work_date: Mapped[date] = mapped_column(sa.Date, nullable=False, index=True)
    day_type: Mapped[DayType] = mapped_column(
        enum_type(DayType, "day_type", 10), nullable=False
    )
    shift_letter: Mapped[Optional[str]] = mapped_column(sa.String(1))
    entry_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )
    exit_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    duration_hours: Mapped[float] = _hours_column()
    jornada_hours: Mapped[float] = _hours_column()

    # Classified hours
    normal_hours: Mapped[float] = _hours_column()
    extra_50_diurnal: Mapped[float] = _hours_column()
    extra_50_nocturnal: Mapped[float] = _hours_column()
    extra_100_diurnal: Mapped[float] = _hours_column()
    extra_100_nocturnal: Mapped[float] = _hours_column()
    normal_hours_displaced_to_100: Mapped[float] = _hours_column()

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )


class InconsistencyFlagRecord(Base):
    __tablename__ = "inconsistency_flags"
    __table_args__ = (
        sa.UniqueConstraint(
            "employee_id", "work_date", "flag_type", name="uq_flag_emp_date_type"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[int] = mapped_column(sa.Integer, nullable=False, index=True)
    work_date: Mapped[date] = mapped_column(sa.Date, nullable=False, index=True)
    flag_type: Mapped[InconsistencyType] = mapped_column(
        enum_type(InconsistencyType, "inconsistency_type", 20), nullable=False
    )
    detail: Mapped[Optional[str]] = mapped_column(sa.Text)
    occurred_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    # Resolution
    is_resolved: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    resolved_by: Mapped[Optional[str]] = mapped_column(sa.String(100))
    resolved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    resolution_note: Mapped[Optional[str]] = mapped_column(sa.Text)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
