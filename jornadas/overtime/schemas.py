"""Classified-hours value objects."""

from __future__ import annotations

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

from jornadas.common.constants import HourBucket


def _on_half_grid(value: float) -> bool:
    return value >= 0 and float(value * 2).is_integer()


class ClassifiedSlot(BaseModel):
    """One payable 30-minute slot and the bucket it was paid into."""

    model_config = ConfigDict(frozen=True)

    start: AwareDatetime
    end: AwareDatetime
    bucket: HourBucket


class ClassifiedHours(BaseModel):
    """Payable hours of one work session, split into rate/period buckets."""

    model_config = ConfigDict(frozen=True)

    normal_hours: float = 0.0
    extra_50_diurnal: float = 0.0
    extra_50_nocturnal: float = 0.0
    extra_100_diurnal: float = 0.0
    extra_100_nocturnal: float = 0.0
    normal_hours_displaced_to_100: float = 0.0
    slots: list[ClassifiedSlot] = Field(default_factory=list)

    @field_validator(
        "normal_hours",
        "extra_50_diurnal",
        "extra_50_nocturnal",
        "extra_100_diurnal",
        "extra_100_nocturnal",
        "normal_hours_displaced_to_100",
    )
    @classmethod
    def _half_hour_multiple(cls, value: float) -> float:
        if not _on_half_grid(value):
            raise ValueError("hours must be a non-negative multiple of 0.5")
        return value

    @property
    def extra_50(self) -> float:
        return self.extra_50_diurnal + self.extra_50_nocturnal

    @property
    def extra_100(self) -> float:
        return self.extra_100_diurnal + self.extra_100_nocturnal

    @property
    def overtime_hours(self) -> float:
        return self.extra_50 + self.extra_100

    @property
    def total_hours(self) -> float:
        return self.normal_hours + self.overtime_hours

    def bucket_hours(self) -> dict[HourBucket, float]:
        return {
            HourBucket.normal: self.normal_hours,
            HourBucket.extra_50_diurnal: self.extra_50_diurnal,
            HourBucket.extra_50_nocturnal: self.extra_50_nocturnal,
            HourBucket.extra_100_diurnal: self.extra_100_diurnal,
            HourBucket.extra_100_nocturnal: self.extra_100_nocturnal,
        }
