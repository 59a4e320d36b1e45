"""Payroll concept rule table.

Maps classified hour buckets to payroll concept codes. Only quantities are
produced here; money is the payroll engine's concern, which reads the
formula descriptor (``multiplier`` and ``nocturnal_premium``) of each rule.
"""

from __future__ import annotations

from datetime import datetime
from typing import NamedTuple, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict

from jornadas.common.constants import (
    AFTERNOON_SHIFT_FROM_HOUR,
    NIGHT_SHIFT_FROM_HOUR,
    NIGHT_SHIFT_UNTIL_HOUR,
    HourBucket,
    ShiftLetter,
)
from jornadas.common.timeutils import local_hour
from jornadas.overtime.schemas import ClassifiedHours

NOCTURNAL_PREMIUM = 1.133


class ConceptRule(NamedTuple):
    code: str
    description: str
    bucket: HourBucket
    multiplier: float
    nocturnal_premium: float = 1.0


# ── Rule table ──────────────────────────────────────────────────────

NORMAL_DIURNAL = ConceptRule("0010", "HORAS DIURNAS", HourBucket.normal, 1.0)
NORMAL_NOCTURNAL = ConceptRule(
    "0020", "HORAS NOCTURNAS", HourBucket.normal, 1.0, NOCTURNAL_PREMIUM
)

OVERTIME_RULES: tuple[ConceptRule, ...] = (
    ConceptRule("0021", "HS. EXTRAS 50%", HourBucket.extra_50_diurnal, 1.5),
    ConceptRule(
        "0025", "HS. EXTRAS 50% N", HourBucket.extra_50_nocturnal, 1.5, NOCTURNAL_PREMIUM
    ),
    ConceptRule("0030", "HS. EXTRAS 100%", HourBucket.extra_100_diurnal, 2.0),
    ConceptRule(
        "0031", "HS. EXTRAS 100% N", HourBucket.extra_100_nocturnal, 2.0, NOCTURNAL_PREMIUM
    ),
)

CONCEPT_RULES: dict[str, ConceptRule] = {
    rule.code: rule for rule in (NORMAL_DIURNAL, NORMAL_NOCTURNAL, *OVERTIME_RULES)
}


class ConceptLine(BaseModel):
    """One quantity line for the payroll engine."""

    model_config = ConfigDict(frozen=True)

    code: str
    description: str
    quantity: float
    multiplier: float
    nocturnal_premium: float


def shift_letter(entry_at: datetime, tz: ZoneInfo) -> ShiftLetter:
    """M / T / N from the local entry hour."""
    hour = local_hour(entry_at, tz)
    if hour >= NIGHT_SHIFT_FROM_HOUR or hour < NIGHT_SHIFT_UNTIL_HOUR:
        return ShiftLetter.night
    if hour >= AFTERNOON_SHIFT_FROM_HOUR:
        return ShiftLetter.afternoon
    return ShiftLetter.morning


def _line(rule: ConceptRule, quantity: float) -> ConceptLine:
    return ConceptLine(
        code=rule.code,
        description=rule.description,
        quantity=quantity,
        multiplier=rule.multiplier,
        nocturnal_premium=rule.nocturnal_premium,
    )


def concept_lines(
    hours: ClassifiedHours,
    shift: Optional[ShiftLetter] = None,
) -> list[ConceptLine]:
    """Non-zero concept lines for one classified day, in code order."""
    lines: list[ConceptLine] = []
    if hours.normal_hours > 0:
        rule = NORMAL_NOCTURNAL if shift == ShiftLetter.night else NORMAL_DIURNAL
        lines.append(_line(rule, hours.normal_hours))

    buckets = hours.bucket_hours()
    for rule in OVERTIME_RULES:
        quantity = buckets[rule.bucket]
        if quantity > 0:
            lines.append(_line(rule, quantity))
    return sorted(lines, key=lambda line: line.code)


def summarize_lines(lines_per_day: list[list[ConceptLine]]) -> dict[str, float]:
    """Total quantity per concept code over several days."""
    totals: dict[str, float] = {}
    for lines in lines_per_day:
        for line in lines:
            totals[line.code] = totals.get(line.code, 0.0) + line.quantity
    return dict(sorted(totals.items()))
