"""Calendar rules: which days can hold exams and how many."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional

from examplanner.domain.constraints import SchedulingConfig


WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

FIRST_PROGRAM_SEMESTERS = 8


def enumerate_exam_dates(
    window_start: date,
    window_end: date,
    holidays: Iterable[date] = (),
) -> list[date]:
    """Return every weekday in the inclusive window that is not a holiday."""
    excluded = set(holidays)
    dates: list[date] = []
    current = window_start
    while current <= window_end:
        if current.weekday() < 5 and current not in excluded:
            dates.append(current)
        current += timedelta(days=1)
    return dates


def daily_capacity(exam_date: date, config: SchedulingConfig) -> int:
    if exam_date.weekday() == config.short_weekday:
        return config.short_day_capacity
    return config.regular_day_capacity


def exam_time_slot(exam_date: date, config: SchedulingConfig) -> str:
    if exam_date.weekday() == config.short_weekday:
        return config.short_day_time_slot
    return config.regular_day_time_slot


def weekday_name(exam_date: date) -> str:
    return WEEKDAY_NAMES[exam_date.weekday()]


def semester_display(semester: int) -> str:
    """Human label; semesters 9-12 belong to the second program."""
    if semester <= FIRST_PROGRAM_SEMESTERS:
        return f"B.Tech Semester {semester}"
    return f"M.Tech Semester {semester - FIRST_PROGRAM_SEMESTERS}"


def semesters_for_term(term: str) -> list[int]:
    if term == "odd":
        return [1, 3, 5, 7, 9, 11]
    if term == "even":
        return [2, 4, 6, 8, 10, 12]
    raise ValueError("term must be 'odd' or 'even'")


def detect_term(semesters: Iterable[int]) -> Optional[str]:
    """Return 'odd' or 'even' when all semesters share a parity, else None."""
    parities = {semester % 2 for semester in semesters}
    if parities == {1}:
        return "odd"
    if parities == {0}:
        return "even"
    return None
