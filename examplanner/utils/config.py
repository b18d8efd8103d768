"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_optional_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None:
        return default
    if not raw.strip() or raw.strip().lower() == "none":
        return None
    return int(raw)


def _env_optional_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None:
        return default
    if not raw.strip() or raw.strip().lower() == "none":
        return None
    return float(raw)


def _env_aliases(name: str, default: dict[str, str]) -> dict[str, str]:
    """Parse ``VARIANT=CANONICAL`` pairs separated by commas."""
    raw = os.getenv(name)
    if raw is None:
        return dict(default)
    aliases: dict[str, str] = {}
    for pair in raw.split(","):
        if not pair.strip():
            continue
        variant, _, canonical = pair.partition("=")
        aliases[variant.strip()] = canonical.strip()
    return aliases


@dataclass(frozen=True)
class Settings:
    app_name: str = "Exam Planner"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    scheduling_default_gap_days: int = 2
    # date.weekday() numbering, 4 = Friday
    scheduling_short_weekday: int = 4
    scheduling_short_day_capacity: int = 1
    scheduling_regular_day_capacity: int = 2
    scheduling_semester_weight: int = 10
    scheduling_gap_weight: int = 5
    scheduling_enrollment_weight: int = 2
    scheduling_lab_penalty: int = 5
    scheduling_max_backtracks: Optional[int] = 100_000
    scheduling_time_limit_seconds: Optional[float] = 30.0

    short_day_time_slot: str = "11:00 AM - 1:30 PM"
    regular_day_time_slot: str = "12:00 PM - 2:30 PM"

    course_prefix_aliases: dict[str, str] = field(
        default_factory=lambda: {"BTCS-": "BT-"}
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    defaults = Settings()
    return Settings(
        app_name=os.getenv("APP_NAME", defaults.app_name),
        app_version=os.getenv("APP_VERSION", defaults.app_version),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        scheduling_default_gap_days=_env_int(
            "SCHEDULING_DEFAULT_GAP_DAYS", defaults.scheduling_default_gap_days
        ),
        scheduling_short_weekday=_env_int(
            "SCHEDULING_SHORT_WEEKDAY", defaults.scheduling_short_weekday
        ),
        scheduling_short_day_capacity=_env_int(
            "SCHEDULING_SHORT_DAY_CAPACITY", defaults.scheduling_short_day_capacity
        ),
        scheduling_regular_day_capacity=_env_int(
            "SCHEDULING_REGULAR_DAY_CAPACITY", defaults.scheduling_regular_day_capacity
        ),
        scheduling_semester_weight=_env_int(
            "SCHEDULING_SEMESTER_WEIGHT", defaults.scheduling_semester_weight
        ),
        scheduling_gap_weight=_env_int("SCHEDULING_GAP_WEIGHT", defaults.scheduling_gap_weight),
        scheduling_enrollment_weight=_env_int(
            "SCHEDULING_ENROLLMENT_WEIGHT", defaults.scheduling_enrollment_weight
        ),
        scheduling_lab_penalty=_env_int("SCHEDULING_LAB_PENALTY", defaults.scheduling_lab_penalty),
        scheduling_max_backtracks=_env_optional_int(
            "SCHEDULING_MAX_BACKTRACKS", defaults.scheduling_max_backtracks
        ),
        scheduling_time_limit_seconds=_env_optional_float(
            "SCHEDULING_TIME_LIMIT_SECONDS", defaults.scheduling_time_limit_seconds
        ),
        short_day_time_slot=os.getenv("SHORT_DAY_TIME_SLOT", defaults.short_day_time_slot),
        regular_day_time_slot=os.getenv("REGULAR_DAY_TIME_SLOT", defaults.regular_day_time_slot),
        course_prefix_aliases=_env_aliases(
            "COURSE_PREFIX_ALIASES", defaults.course_prefix_aliases
        ),
    )
