"""Exam date assignment via priority-ordered backtracking search."""

from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, Mapping, Optional

from examplanner.domain.calendar import (
    daily_capacity,
    enumerate_exam_dates,
    exam_time_slot,
    semesters_for_term,
    weekday_name,
)
from examplanner.domain.constraints import (
    SchedulingConfig,
    validate_scheduling_config,
    validate_semester,
)
from examplanner.domain.models import Course, ScheduleItem, SchedulingUnit
from examplanner.services.course_normalizer import merge_courses, normalize_enrollments
from examplanner.utils.config import Settings, get_settings
from examplanner.utils.logger import get_logger


logger = get_logger(__name__)


class SchedulingError(Exception):
    """Base failure of the date assignment engine."""


class SchedulingValidationError(SchedulingError):
    """Raised when courses or engine configuration are invalid."""


class NoValidDatesError(SchedulingError):
    """Raised when the window holds no weekday outside the holiday set."""


class UnsatisfiableScheduleError(SchedulingError):
    """Raised when no complete schedule exists or the search budget ran out.

    ``partial_items`` is the deepest consistent assignment the search
    reached; it is informational only and never a valid schedule.
    """

    def __init__(
        self,
        message: str,
        *,
        failed_unit: Optional[str],
        partial_items: list[ScheduleItem],
        unplaced_codes: list[str],
        backtracks: int,
        budget_exhausted: bool = False,
    ) -> None:
        super().__init__(message)
        self.failed_unit = failed_unit
        self.partial_items = partial_items
        self.unplaced_codes = unplaced_codes
        self.backtracks = backtracks
        self.budget_exhausted = budget_exhausted


def compute_priority(unit: SchedulingUnit, enrolled_count: int, config: SchedulingConfig) -> int:
    priority = unit.semester * config.semester_weight
    priority += unit.gap_days * config.gap_weight
    priority += enrolled_count * config.enrollment_weight
    if unit.is_lab:
        priority -= config.lab_penalty
    return priority


def order_units(
    units: list[SchedulingUnit],
    students_by_code: Mapping[str, tuple[str, ...]],
    config: SchedulingConfig,
) -> list[SchedulingUnit]:
    """Highest priority first; equal priorities keep their input order."""
    return sorted(
        units,
        key=lambda unit: (
            -compute_priority(unit, len(students_by_code.get(unit.course_code, ())), config),
            unit.input_index,
        ),
    )


@dataclass
class SchedulingContext:
    """Mutable search state owned by a single engine invocation."""

    config: SchedulingConfig
    students_by_code: Mapping[str, tuple[str, ...]]
    date_counts: dict[date, int] = field(default_factory=dict)
    # student -> exam date -> gap requirement of the course sat that day
    student_dates: dict[str, dict[date, int]] = field(default_factory=dict)
    placed: dict[str, date] = field(default_factory=dict)

    def is_admissible(self, unit: SchedulingUnit, candidate: date) -> bool:
        if self.date_counts.get(candidate, 0) >= daily_capacity(candidate, self.config):
            return False
        for student_id in self.students_by_code.get(unit.course_code, ()):
            booked = self.student_dates.get(student_id)
            if not booked:
                continue
            if candidate in booked:
                return False
            for other_date, other_gap in booked.items():
                if abs((candidate - other_date).days) < max(unit.gap_days, other_gap):
                    return False
        return True

    def place(self, unit: SchedulingUnit, candidate: date) -> None:
        self.date_counts[candidate] = self.date_counts.get(candidate, 0) + 1
        for student_id in self.students_by_code.get(unit.course_code, ()):
            self.student_dates.setdefault(student_id, {})[candidate] = unit.gap_days
        self.placed[unit.course_code] = candidate

    def unplace(self, unit: SchedulingUnit) -> None:
        candidate = self.placed.pop(unit.course_code)
        self.date_counts[candidate] -= 1
        if self.date_counts[candidate] == 0:
            del self.date_counts[candidate]
        for student_id in self.students_by_code.get(unit.course_code, ()):
            booked = self.student_dates[student_id]
            del booked[candidate]
            if not booked:
                del self.student_dates[student_id]


class _SearchBudget:
    def __init__(self, max_backtracks: Optional[int], time_limit_seconds: Optional[float]) -> None:
        self._max_backtracks = max_backtracks
        self._time_limit_seconds = time_limit_seconds
        self._started = time.perf_counter()
        self.backtracks = 0

    @property
    def elapsed_seconds(self) -> float:
        return time.perf_counter() - self._started

    def record_backtrack(self) -> None:
        self.backtracks += 1

    def exhausted(self) -> bool:
        if self._max_backtracks is not None and self.backtracks > self._max_backtracks:
            return True
        if self._time_limit_seconds is not None and self.elapsed_seconds >= self._time_limit_seconds:
            return True
        return False


@dataclass
class _SearchOutcome:
    success: bool
    budget_exhausted: bool
    best_depth: int
    best_placements: list[tuple[SchedulingUnit, date]]


def _search(
    units: list[SchedulingUnit],
    dates: list[date],
    context: SchedulingContext,
    budget: _SearchBudget,
) -> _SearchOutcome:
    """Depth-first search over units with an explicit per-depth date cursor.

    ``next_date[d]`` is the next candidate index to try for the unit at depth
    ``d`` and ``chosen[d]`` records whether that unit is currently placed.
    Returning to a depth with a placed unit undoes it before moving the
    cursor on, which is the backtracking step.
    """
    count = len(units)
    next_date = [0] * count
    chosen = [False] * count
    best_depth = 0
    best_placements: list[tuple[SchedulingUnit, date]] = []
    depth = 0

    while depth < count:
        if budget.exhausted():
            return _SearchOutcome(False, True, best_depth, best_placements)

        unit = units[depth]
        if chosen[depth]:
            context.unplace(unit)
            chosen[depth] = False
        elif next_date[depth] == 0 and unit.course_code in context.placed:
            # alias of a unit placed earlier in this branch
            next_date[depth] = len(dates)
            depth += 1
            continue

        while next_date[depth] < len(dates):
            candidate = dates[next_date[depth]]
            next_date[depth] += 1
            if context.is_admissible(unit, candidate):
                context.place(unit, candidate)
                chosen[depth] = True
                break

        if chosen[depth]:
            depth += 1
            if depth > best_depth:
                best_depth = depth
                best_placements = [
                    (placed_unit, context.placed[placed_unit.course_code])
                    for placed_unit in units[:depth]
                    if placed_unit.course_code in context.placed
                ]
            continue

        next_date[depth] = 0
        budget.record_backtrack()
        depth -= 1
        # skip back over alias frames, they hold no placement of their own
        while depth >= 0 and not chosen[depth]:
            next_date[depth] = 0
            depth -= 1
        if depth < 0:
            return _SearchOutcome(False, False, best_depth, best_placements)

    return _SearchOutcome(True, False, count, best_placements)


def _build_items(
    placements: Iterable[tuple[SchedulingUnit, date]],
    config: SchedulingConfig,
) -> list[ScheduleItem]:
    items = [
        ScheduleItem(
            unit_id=unit.unit_id,
            course_code=unit.course_code,
            source_codes=unit.source_codes,
            course_name=unit.course_name,
            teacher_name=unit.teacher_name,
            exam_date=exam_date,
            day_of_week=weekday_name(exam_date),
            time_slot=exam_time_slot(exam_date, config),
            semester=unit.semester,
            program_type=unit.program_type,
            gap_days=unit.gap_days,
        )
        for unit, exam_date in placements
    ]
    items.sort(key=lambda item: (item.exam_date, item.semester, item.course_code))
    if items:
        items[0] = replace(items[0], is_first_paper=True)
    return items


def _index_students(
    enrollment_map: Mapping[str, frozenset[str]],
    codes: set[str],
) -> dict[str, tuple[str, ...]]:
    students_by_code: dict[str, list[str]] = defaultdict(list)
    for student_id in sorted(enrollment_map):
        for code in enrollment_map[student_id]:
            if code in codes:
                students_by_code[code].append(student_id)
    return {code: tuple(students) for code, students in students_by_code.items()}


def _validate_units(units: list[SchedulingUnit]) -> None:
    for unit in units:
        try:
            validate_semester(unit.semester)
        except ValueError as exc:
            raise SchedulingValidationError(f"{unit.course_code}: {exc}") from exc
        if unit.gap_days < 0:
            raise SchedulingValidationError(f"{unit.course_code}: gap_days must be >= 0")


def schedule_exams(
    courses: Iterable[Course],
    enrollment_map: Mapping[str, Iterable[str]],
    window_start: date,
    window_end: date,
    holidays: Iterable[date] = (),
    config: Optional[SchedulingConfig] = None,
) -> list[ScheduleItem]:
    """Assign one exam date per scheduling unit or fail the whole run."""
    config = config or SchedulingConfig()
    try:
        validate_scheduling_config(config)
    except ValueError as exc:
        raise SchedulingValidationError(str(exc)) from exc

    dates = enumerate_exam_dates(window_start, window_end, holidays)
    if not dates:
        raise NoValidDatesError(
            f"No valid exam dates between {window_start.isoformat()} and {window_end.isoformat()}"
        )

    units = merge_courses(
        courses,
        default_gap_days=config.default_gap_days,
        prefix_aliases=config.prefix_aliases,
    )
    _validate_units(units)
    enrollments = normalize_enrollments(enrollment_map, config.prefix_aliases)
    students_by_code = _index_students(enrollments, {unit.course_code for unit in units})
    ordered = order_units(units, students_by_code, config)

    logger.info(
        "Date assignment started | units=%s | candidate_dates=%s | students=%s",
        len(ordered),
        len(dates),
        len(enrollments),
    )
    context = SchedulingContext(config=config, students_by_code=students_by_code)
    budget = _SearchBudget(config.max_backtracks, config.time_limit_seconds)
    outcome = _search(ordered, dates, context, budget)

    if not outcome.success:
        partial_items = _build_items(outcome.best_placements, config)
        placed_codes = {item.course_code for item in partial_items}
        unplaced = [unit.course_code for unit in ordered if unit.course_code not in placed_codes]
        failed_unit = ordered[outcome.best_depth].course_code if ordered else None
        if outcome.budget_exhausted:
            message = (
                f"Search budget exhausted after {budget.backtracks} backtracks while placing "
                f"{failed_unit}. Try extending the date range or reducing gap requirements."
            )
        else:
            message = (
                f"Could not schedule all courses; {failed_unit} has no admissible date. "
                "Try extending the date range or reducing gap requirements."
            )
        logger.warning(
            "Date assignment failed | failed_unit=%s | placed=%s | unplaced=%s | "
            "backtracks=%s | budget_exhausted=%s",
            failed_unit,
            len(partial_items),
            len(unplaced),
            budget.backtracks,
            outcome.budget_exhausted,
        )
        raise UnsatisfiableScheduleError(
            message,
            failed_unit=failed_unit,
            partial_items=partial_items,
            unplaced_codes=unplaced,
            backtracks=budget.backtracks,
            budget_exhausted=outcome.budget_exhausted,
        )

    items = _build_items(
        ((unit, context.placed[unit.course_code]) for unit in ordered),
        config,
    )
    logger.info(
        "Date assignment completed | items=%s | dates_used=%s | backtracks=%s | elapsed=%.3fs",
        len(items),
        len({item.exam_date for item in items}),
        budget.backtracks,
        budget.elapsed_seconds,
    )
    return items


class DateAssignmentService:
    """Settings-aware entry point for the date assignment engine."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def build_config(
        self,
        *,
        max_backtracks: Optional[int] = None,
        time_limit_seconds: Optional[float] = None,
    ) -> SchedulingConfig:
        config = SchedulingConfig.from_settings(self._settings)
        if max_backtracks is not None:
            config = replace(config, max_backtracks=max_backtracks)
        if time_limit_seconds is not None:
            config = replace(config, time_limit_seconds=time_limit_seconds)
        return config

    def schedule(
        self,
        *,
        courses: Iterable[Course],
        enrollment_map: Mapping[str, Iterable[str]],
        window_start: date,
        window_end: date,
        holidays: Iterable[date] = (),
        max_backtracks: Optional[int] = None,
        time_limit_seconds: Optional[float] = None,
        term: Optional[str] = None,
    ) -> list[ScheduleItem]:
        """Schedule ``courses``; with ``term`` only that term's semesters are kept."""
        config = self.build_config(
            max_backtracks=max_backtracks,
            time_limit_seconds=time_limit_seconds,
        )
        if term is not None:
            try:
                term_semesters = set(semesters_for_term(term))
            except ValueError as exc:
                raise SchedulingValidationError(str(exc)) from exc
            courses = [course for course in courses if course.semester in term_semesters]
            if not courses:
                raise SchedulingValidationError(f"No courses belong to the {term} term")
        return schedule_exams(
            courses=courses,
            enrollment_map=enrollment_map,
            window_start=window_start,
            window_end=window_end,
            holidays=holidays,
            config=config,
        )
