from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from examplanner.domain.constraints import SchedulingConfig
from examplanner.domain.models import Course
from examplanner.domain.validation import capacity_violations, schedule_conflicts
from examplanner.services.course_normalizer import merge_courses
from examplanner.services.date_assignment_service import (
    DateAssignmentService,
    NoValidDatesError,
    SchedulingValidationError,
    UnsatisfiableScheduleError,
    compute_priority,
    order_units,
    schedule_exams,
)
from examplanner.utils.config import get_settings


MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
WEDNESDAY = date(2026, 10, 21)
THURSDAY = date(2026, 10, 22)
FRIDAY = date(2026, 10, 23)
NEXT_MONDAY = date(2026, 10, 26)


def _course(code: str, semester: int = 1, gap_days: int | None = 2, **kwargs) -> Course:
    return Course(course_id=code.lower(), course_code=code, semester=semester, gap_days=gap_days, **kwargs)


def _two_course_case() -> tuple[list[Course], dict[str, list[str]]]:
    courses = [_course("A"), _course("B")]
    enrollments = {
        "X": ["A", "B"],
        "Y": ["A"],
        "Z": ["A"],
    }
    return courses, enrollments


# --- Scenarios ---

def test_shared_student_courses_are_placed_gap_days_apart() -> None:
    courses, enrollments = _two_course_case()

    items = schedule_exams(courses, enrollments, MONDAY, FRIDAY)

    assert [(item.course_code, item.exam_date) for item in items] == [
        ("A", MONDAY),
        ("B", WEDNESDAY),
    ]
    assert items[0].is_first_paper
    assert not items[1].is_first_paper
    assert items[0].day_of_week == "Monday"
    assert items[0].time_slot == "12:00 PM - 2:30 PM"


def test_two_day_window_is_unsatisfiable() -> None:
    courses, enrollments = _two_course_case()

    with pytest.raises(UnsatisfiableScheduleError) as excinfo:
        schedule_exams(courses, enrollments, MONDAY, TUESDAY)

    error = excinfo.value
    assert error.failed_unit == "B"
    assert error.unplaced_codes == ["B"]
    assert [item.course_code for item in error.partial_items] == ["A"]
    assert error.backtracks == 3
    assert not error.budget_exhausted
    assert "extending the date range" in str(error)


def test_unsatisfiable_run_logs_failed_unit_fields(caplog) -> None:
    courses, enrollments = _two_course_case()

    with caplog.at_level("WARNING", logger="examplanner.services.date_assignment_service"):
        with pytest.raises(UnsatisfiableScheduleError):
            schedule_exams(courses, enrollments, MONDAY, TUESDAY)

    (record,) = [r for r in caplog.records if r.levelname == "WARNING"]
    assert "failed_unit=B" in record.getMessage()
    assert "backtracks=3" in record.getMessage()


def test_backtrack_budget_stops_search_gracefully() -> None:
    courses, enrollments = _two_course_case()
    config = SchedulingConfig(max_backtracks=0)

    with pytest.raises(UnsatisfiableScheduleError) as excinfo:
        schedule_exams(courses, enrollments, MONDAY, TUESDAY, config=config)

    assert excinfo.value.budget_exhausted
    assert excinfo.value.backtracks == 1


def test_search_backtracks_out_of_a_dead_end() -> None:
    # A takes the single Friday seat first, which leaves B and C (who share
    # a student) only Monday; the search has to move A to Monday instead.
    courses = [
        _course("A", semester=8),
        _course("B", semester=5),
        _course("C", semester=1),
    ]
    enrollments = {
        "s1": ["B", "C"],
        "s2": ["A"],
    }

    items = schedule_exams(courses, enrollments, FRIDAY, NEXT_MONDAY)

    assert {item.course_code: item.exam_date for item in items} == {
        "A": NEXT_MONDAY,
        "B": FRIDAY,
        "C": NEXT_MONDAY,
    }
    assert items[0].course_code == "B"
    assert items[0].is_first_paper


def test_gap_uses_the_larger_requirement_of_both_courses() -> None:
    courses = [
        _course("A", semester=8, gap_days=5),
        _course("B", semester=1, gap_days=1),
    ]
    enrollments = {"X": ["A", "B"]}

    items = schedule_exams(courses, enrollments, MONDAY, date(2026, 10, 30))

    dates = {item.course_code: item.exam_date for item in items}
    assert dates == {"A": MONDAY, "B": NEXT_MONDAY}


def test_daily_capacity_is_respected() -> None:
    courses = [_course("P"), _course("Q"), _course("R")]

    items = schedule_exams(courses, {}, THURSDAY, FRIDAY)

    per_day = {}
    for item in items:
        per_day[item.exam_date] = per_day.get(item.exam_date, 0) + 1
    assert per_day == {THURSDAY: 2, FRIDAY: 1}
    friday_item = next(item for item in items if item.exam_date == FRIDAY)
    assert friday_item.time_slot == "11:00 AM - 1:30 PM"

    with pytest.raises(UnsatisfiableScheduleError):
        schedule_exams(courses, {}, FRIDAY, FRIDAY)


def test_merged_variants_yield_exactly_one_item() -> None:
    courses = [
        _course("BT-301", semester=5, teacher_name="Rao"),
        _course("BTCS-301", semester=5, teacher_name="Iyer"),
    ]
    enrollments = {"s1": ["BT-301"], "s2": ["BTCS-301"]}

    items = schedule_exams(courses, enrollments, MONDAY, FRIDAY)

    assert len(items) == 1
    assert items[0].course_code == "BT-301"
    assert items[0].source_codes == ("BT-301", "BTCS-301")
    assert items[0].teacher_name == "Rao, Iyer"


# --- Ordering ---

def test_priority_formula() -> None:
    config = SchedulingConfig()
    (unit,) = merge_courses([_course("BT-CSL9", semester=3, gap_days=4)])

    assert unit.is_lab
    assert compute_priority(unit, enrolled_count=7, config=config) == 30 + 20 + 14 - 5


def test_lab_prefix_loses_priority_against_equal_theory_course() -> None:
    config = SchedulingConfig()
    units = merge_courses([_course("EL-201", semester=3), _course("EC-201", semester=3)])

    ordered = order_units(units, {}, config)

    assert [unit.course_code for unit in ordered] == ["EC-201", "EL-201"]


def test_units_ordered_by_priority_then_input_order() -> None:
    config = SchedulingConfig()
    units = merge_courses(
        [
            _course("BASIC", semester=1),
            _course("TIE-2", semester=4),
            _course("HIGH", semester=7),
            _course("TIE-1", semester=4),
        ]
    )

    ordered = order_units(units, {}, config)

    assert [unit.course_code for unit in ordered] == ["HIGH", "TIE-2", "TIE-1", "BASIC"]


def test_equal_priority_tie_break_follows_input_order() -> None:
    first = schedule_exams([_course("ZZ-1"), _course("YY-1")], {}, FRIDAY, NEXT_MONDAY)
    second = schedule_exams([_course("YY-1"), _course("ZZ-1")], {}, FRIDAY, NEXT_MONDAY)

    assert first[0].exam_date == FRIDAY and first[0].course_code == "ZZ-1"
    assert second[0].exam_date == FRIDAY and second[0].course_code == "YY-1"


def test_result_is_deterministic() -> None:
    courses, enrollments = _two_course_case()

    assert schedule_exams(courses, enrollments, MONDAY, FRIDAY) == schedule_exams(
        courses, enrollments, MONDAY, FRIDAY
    )


# --- Invariants on a larger instance ---

def test_larger_instance_satisfies_all_invariants() -> None:
    codes = [f"BT-{100 + index}" for index in range(8)]
    courses = [_course(code, semester=1 + index % 8) for index, code in enumerate(codes)]
    enrollments = {
        f"s{student}": [codes[student % 8], codes[(student + 3) % 8], codes[(student + 5) % 8]]
        for student in range(40)
    }
    config = SchedulingConfig()

    items = schedule_exams(courses, enrollments, MONDAY, date(2026, 11, 6), config=config)

    assert sorted(item.course_code for item in items) == codes
    assert schedule_conflicts(items, enrollments) == []
    assert capacity_violations(items, config) == []
    assert [item.exam_date for item in items] == sorted(item.exam_date for item in items)
    assert sum(item.is_first_paper for item in items) == 1


# --- Failures ---

def test_window_without_weekdays_raises_no_valid_dates() -> None:
    courses, enrollments = _two_course_case()

    with pytest.raises(NoValidDatesError):
        schedule_exams(courses, enrollments, date(2026, 10, 24), date(2026, 10, 25))

    with pytest.raises(NoValidDatesError):
        schedule_exams(courses, enrollments, MONDAY, TUESDAY, holidays=[MONDAY, TUESDAY])


def test_invalid_semester_raises_validation_error() -> None:
    with pytest.raises(SchedulingValidationError):
        schedule_exams([_course("A", semester=13)], {}, MONDAY, FRIDAY)


def test_invalid_config_raises_validation_error() -> None:
    courses, enrollments = _two_course_case()

    with pytest.raises(SchedulingValidationError):
        schedule_exams(
            courses,
            enrollments,
            MONDAY,
            FRIDAY,
            config=SchedulingConfig(regular_day_capacity=0),
        )


# --- Service wiring ---

def test_service_applies_settings_and_overrides() -> None:
    get_settings.cache_clear()
    settings = replace(get_settings(), scheduling_short_day_capacity=2)
    service = DateAssignmentService(settings=settings)

    items = service.schedule(
        courses=[_course("P"), _course("Q")],
        enrollment_map={},
        window_start=FRIDAY,
        window_end=FRIDAY,
    )
    assert [item.exam_date for item in items] == [FRIDAY, FRIDAY]

    courses, enrollments = _two_course_case()
    with pytest.raises(UnsatisfiableScheduleError) as excinfo:
        service.schedule(
            courses=courses,
            enrollment_map=enrollments,
            window_start=MONDAY,
            window_end=TUESDAY,
            max_backtracks=0,
        )
    assert excinfo.value.budget_exhausted
