"""Course-code normalization and merging into scheduling units."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Mapping, Optional

from examplanner.domain.models import Course, SchedulingUnit


DEFAULT_PREFIX_ALIASES = {"BTCS-": "BT-"}


def normalize_course_code(
    course_code: str,
    prefix_aliases: Optional[Mapping[str, str]] = None,
) -> str:
    """Rewrite a variant prefix onto its canonical prefix.

    Longer variants are tried first so that ``BTCS-`` wins over a shorter
    alias such as ``BTC-`` that would also match.
    """
    aliases = DEFAULT_PREFIX_ALIASES if prefix_aliases is None else prefix_aliases
    code = course_code.strip()
    for variant in sorted(aliases, key=len, reverse=True):
        if code.startswith(variant):
            return aliases[variant] + code[len(variant):]
    return code


def should_merge(
    first_code: str,
    second_code: str,
    prefix_aliases: Optional[Mapping[str, str]] = None,
) -> bool:
    return normalize_course_code(first_code, prefix_aliases) == normalize_course_code(
        second_code, prefix_aliases
    )


def group_by_normalized_code(
    courses: Iterable[Course],
    prefix_aliases: Optional[Mapping[str, str]] = None,
) -> dict[str, list[tuple[int, Course]]]:
    """Group courses under their normalized code, keeping input positions."""
    grouped: dict[str, list[tuple[int, Course]]] = defaultdict(list)
    for index, course in enumerate(courses):
        grouped[normalize_course_code(course.course_code, prefix_aliases)].append((index, course))
    return dict(grouped)


def merge_courses(
    courses: Iterable[Course],
    *,
    default_gap_days: int = 2,
    prefix_aliases: Optional[Mapping[str, str]] = None,
) -> list[SchedulingUnit]:
    """Collapse mergeable course variants into one unit each, in input order."""
    units: list[SchedulingUnit] = []
    for normalized_code, members in group_by_normalized_code(courses, prefix_aliases).items():
        first_index, primary = members[0]
        constituents = [course for _, course in members]

        teacher_labels: list[str] = []
        for course in constituents:
            label = (course.teacher_name or "").strip()
            if label and label not in teacher_labels:
                teacher_labels.append(label)

        gap_days = max(
            course.gap_days if course.gap_days is not None else default_gap_days
            for course in constituents
        )
        if len(constituents) == 1:
            unit_id = primary.course_id
        else:
            joined_ids = "_".join(course.course_id for course in constituents)
            unit_id = f"merged_{normalized_code}_{joined_ids}"

        units.append(
            SchedulingUnit(
                unit_id=unit_id,
                course_code=normalized_code,
                source_codes=tuple(course.course_code for course in constituents),
                course_name=primary.course_name,
                teacher_name=", ".join(teacher_labels),
                semester=primary.semester,
                program_type=primary.program_type,
                gap_days=gap_days,
                is_lab=any(course.is_lab for course in constituents),
                department=primary.department,
                input_index=first_index,
            )
        )
    return units


def normalize_enrollments(
    enrollment_map: Mapping[str, Iterable[str]],
    prefix_aliases: Optional[Mapping[str, str]] = None,
) -> dict[str, frozenset[str]]:
    return {
        student_id: frozenset(
            normalize_course_code(code, prefix_aliases) for code in course_codes
        )
        for student_id, course_codes in enrollment_map.items()
    }
