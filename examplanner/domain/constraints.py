"""Domain-level validation rules for the scheduling engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from examplanner.utils.config import Settings


MAX_SEMESTER = 12


@dataclass(frozen=True)
class SchedulingConfig:
    default_gap_days: int = 2
    short_weekday: int = 4
    short_day_capacity: int = 1
    regular_day_capacity: int = 2
    semester_weight: int = 10
    gap_weight: int = 5
    enrollment_weight: int = 2
    lab_penalty: int = 5
    max_backtracks: Optional[int] = 100_000
    time_limit_seconds: Optional[float] = 30.0
    short_day_time_slot: str = "11:00 AM - 1:30 PM"
    regular_day_time_slot: str = "12:00 PM - 2:30 PM"
    prefix_aliases: dict[str, str] = field(default_factory=lambda: {"BTCS-": "BT-"})

    @classmethod
    def from_settings(cls, settings: Settings) -> "SchedulingConfig":
        return cls(
            default_gap_days=settings.scheduling_default_gap_days,
            short_weekday=settings.scheduling_short_weekday,
            short_day_capacity=settings.scheduling_short_day_capacity,
            regular_day_capacity=settings.scheduling_regular_day_capacity,
            semester_weight=settings.scheduling_semester_weight,
            gap_weight=settings.scheduling_gap_weight,
            enrollment_weight=settings.scheduling_enrollment_weight,
            lab_penalty=settings.scheduling_lab_penalty,
            max_backtracks=settings.scheduling_max_backtracks,
            time_limit_seconds=settings.scheduling_time_limit_seconds,
            short_day_time_slot=settings.short_day_time_slot,
            regular_day_time_slot=settings.regular_day_time_slot,
            prefix_aliases=dict(settings.course_prefix_aliases),
        )


def validate_scheduling_config(config: SchedulingConfig) -> None:
    if config.default_gap_days < 0:
        raise ValueError("default_gap_days must be >= 0")
    if not 0 <= config.short_weekday <= 4:
        raise ValueError("short_weekday must be a weekday between 0 (Monday) and 4 (Friday)")
    if config.short_day_capacity <= 0:
        raise ValueError("short_day_capacity must be > 0")
    if config.regular_day_capacity <= 0:
        raise ValueError("regular_day_capacity must be > 0")
    if config.max_backtracks is not None and config.max_backtracks < 0:
        raise ValueError("max_backtracks must be >= 0")
    if config.time_limit_seconds is not None and config.time_limit_seconds <= 0:
        raise ValueError("time_limit_seconds must be > 0")
    for variant, canonical in config.prefix_aliases.items():
        if not variant or not canonical:
            raise ValueError("prefix_aliases entries must be non-empty")


def validate_semester(semester: int) -> None:
    if not 1 <= semester <= MAX_SEMESTER:
        raise ValueError(f"semester must be between 1 and {MAX_SEMESTER}")
