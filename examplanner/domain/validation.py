"""Post-hoc checks of the invariants every produced result must satisfy.

Each check returns a list of human-readable violations; an empty list means
the result is valid.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from itertools import combinations
from typing import Iterable, Mapping

from examplanner.domain.calendar import daily_capacity
from examplanner.domain.constraints import SchedulingConfig
from examplanner.domain.models import ScheduleItem, SeatingPlan


def schedule_conflicts(
    items: list[ScheduleItem],
    enrollment_map: Mapping[str, Iterable[str]],
) -> list[str]:
    """Same-day clashes and gap violations, per student.

    ``enrollment_map`` must use the normalized course codes carried by the
    schedule items.
    """
    item_by_code = {item.course_code: item for item in items}
    violations: list[str] = []
    for student_id in sorted(enrollment_map):
        own_items = sorted(
            (item_by_code[code] for code in set(enrollment_map[student_id]) if code in item_by_code),
            key=lambda item: item.course_code,
        )
        for first, second in combinations(own_items, 2):
            distance = abs((first.exam_date - second.exam_date).days)
            if distance == 0:
                violations.append(
                    f"{student_id}: {first.course_code} and {second.course_code} "
                    f"share {first.exam_date.isoformat()}"
                )
            elif distance < max(first.gap_days, second.gap_days):
                violations.append(
                    f"{student_id}: {first.course_code} and {second.course_code} "
                    f"are {distance} days apart"
                )
    return violations


def capacity_violations(items: list[ScheduleItem], config: SchedulingConfig) -> list[str]:
    counts = Counter(item.exam_date for item in items)
    return [
        f"{exam_date.isoformat()} holds {count} exams (limit {daily_capacity(exam_date, config)})"
        for exam_date, count in sorted(counts.items())
        if count > daily_capacity(exam_date, config)
    ]


def seating_violations(plans: list[SeatingPlan]) -> list[str]:
    """Duplicate students, stale labels and orthogonally adjacent occupants."""
    violations: list[str] = []
    placements: dict[tuple[str, str], list[str]] = defaultdict(list)
    for plan in plans:
        for row_index, row in enumerate(plan.seats):
            for column_index, seat in enumerate(row):
                if seat is None:
                    continue
                expected_label = f"R{row_index + 1}C{column_index + 1}"
                if seat.seat_label != expected_label:
                    violations.append(
                        f"{plan.venue_id}: {seat.student_id} labelled {seat.seat_label} "
                        f"but sits at {expected_label}"
                    )
                placements[(seat.student_id, seat.course_code)].append(
                    f"{plan.venue_id}:{expected_label}"
                )
                for neighbour_row, neighbour_column in (
                    (row_index, column_index + 1),
                    (row_index + 1, column_index),
                ):
                    if neighbour_row >= plan.rows or neighbour_column >= plan.columns:
                        continue
                    if plan.seats[neighbour_row][neighbour_column] is not None:
                        violations.append(
                            f"{plan.venue_id}: {expected_label} is adjacent to "
                            f"R{neighbour_row + 1}C{neighbour_column + 1}"
                        )
    for (student_id, course_code), seats in sorted(placements.items()):
        if len(seats) > 1:
            violations.append(f"{student_id} ({course_code}) seated {len(seats)} times: {seats}")
    return violations
