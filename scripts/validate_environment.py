#!/usr/bin/env python3
"""Validate local Exam Planner environment readiness."""

from __future__ import annotations

import importlib
import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from examplanner.domain.constraints import SchedulingConfig
from examplanner.domain.models import Course, StudentSitting, Venue
from examplanner.domain.validation import (
    capacity_violations,
    schedule_conflicts,
    seating_violations,
)
from examplanner.services.date_assignment_service import schedule_exams
from examplanner.services.seat_assignment_service import assign_seats

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    import_errors: list[str] = []
    for module_name in ("fastapi", "uvicorn", "pydantic", "httpx", "pytest"):
        try:
            importlib.import_module(module_name)
        except Exception as exc:  # pragma: no cover - runtime guard
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 3: Date assignment smoke run
    config = SchedulingConfig()
    enrollments = {
        "S1": ["BT-CS101", "BT-CS201"],
        "S2": ["BTCS-CS101", "BT-MA101"],
        "S3": ["BT-CS201", "BT-MA101"],
    }
    items = []
    try:
        items = schedule_exams(
            courses=[
                Course(course_id="1", course_code="BT-CS101", semester=1, teacher_name="Rao"),
                Course(course_id="2", course_code="BTCS-CS101", semester=1, teacher_name="Iyer"),
                Course(course_id="3", course_code="BT-CS201", semester=3),
                Course(course_id="4", course_code="BT-MA101", semester=1),
            ],
            enrollment_map=enrollments,
            window_start=date(2026, 3, 2),
            window_end=date(2026, 3, 13),
            config=config,
        )
        normalized = {
            student: [code.replace("BTCS-", "BT-") for code in codes]
            for student, codes in enrollments.items()
        }
        problems = schedule_conflicts(items, normalized) + capacity_violations(items, config)
        if len(items) != 3 or problems:
            raise RuntimeError(f"items={len(items)} problems={problems}")
        ok, line = _print_result("Date assignment", True, f": {len(items)} exams placed")
    except Exception as exc:
        ok, line = _print_result("Date assignment", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 4: Seat assignment smoke run
    try:
        result = assign_seats(
            date(2026, 3, 2),
            [
                StudentSitting(student_id=f"S{index}", course_code=code)
                for index, code in enumerate(["C", "C", "C", "D", "D", "D"])
            ],
            [Venue(venue_id="HALL-1", rows=2, columns=4)],
        )
        problems = seating_violations(result.plans)
        if result.seated_count != 4 or result.unassigned_count != 2 or problems:
            raise RuntimeError(
                f"seated={result.seated_count} unassigned={result.unassigned_count} "
                f"problems={problems}"
            )
        ok, line = _print_result("Seat assignment", True, ": 4 seated, 2 unassigned")
    except Exception as exc:
        ok, line = _print_result("Seat assignment", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    print(SEPARATOR_LINE)
    print(" Exam Planner Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
