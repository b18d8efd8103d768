from __future__ import annotations

from dataclasses import replace

from fastapi import FastAPI
from fastapi.testclient import TestClient

from examplanner.controllers.scheduling_controller import router
from examplanner.services.date_assignment_service import DateAssignmentService
from examplanner.services.seat_assignment_service import SeatAssignmentService
from examplanner.utils.config import get_settings


def _build_test_client(**setting_overrides) -> TestClient:
    get_settings.cache_clear()
    settings = replace(get_settings(), **setting_overrides)
    app = FastAPI()
    app.include_router(router)
    app.state.date_assignment_service = DateAssignmentService(settings=settings)
    app.state.seat_assignment_service = SeatAssignmentService()
    return TestClient(app)


def _schedule_payload(window_end: str = "2026-10-23") -> dict:
    return {
        "courses": [
            {"course_id": "1", "course_code": "BT-101", "semester": 1, "teacher_name": "Rao"},
            {"course_id": "2", "course_code": "BTCS-101", "semester": 1, "teacher_name": "Iyer"},
            {"course_id": "3", "course_code": "BT-201", "semester": 3, "gap_days": 2},
        ],
        "enrollments": {
            "s1": ["BT-101", "BT-201"],
            "s2": ["BTCS-101"],
        },
        "window_start": "2026-10-19",
        "window_end": window_end,
        "holidays": [],
    }


def test_health_endpoint() -> None:
    client = _build_test_client()

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_schedule_exams_endpoint_returns_merged_schedule() -> None:
    client = _build_test_client()

    response = client.post("/schedule_exams", json=_schedule_payload())

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["total_items"] == 2
    by_code = {item["course_code"]: item for item in body["items"]}
    assert by_code["BT-201"]["exam_date"] == "2026-10-19"
    assert by_code["BT-101"]["exam_date"] == "2026-10-21"
    assert by_code["BT-101"]["source_codes"] == ["BT-101", "BTCS-101"]
    assert by_code["BT-101"]["teacher_name"] == "Rao, Iyer"
    assert body["items"][0]["is_first_paper"] is True
    assert by_code["BT-201"]["semester_label"] == "B.Tech Semester 3"
    assert body["term"] == "odd"


def test_term_filter_keeps_only_that_terms_semesters() -> None:
    client = _build_test_client()
    payload = _schedule_payload()
    payload["courses"].append({"course_id": "4", "course_code": "MT-502", "semester": 10})

    response = client.post("/schedule_exams", json={**payload, "term": "even"})

    assert response.status_code == 200, response.text
    body = response.json()
    assert [item["course_code"] for item in body["items"]] == ["MT-502"]
    assert body["items"][0]["semester_label"] == "M.Tech Semester 2"
    assert body["term"] == "even"

    mixed = client.post("/schedule_exams", json=payload)
    assert mixed.status_code == 200
    assert mixed.json()["term"] is None


def test_term_without_matching_courses_is_rejected() -> None:
    client = _build_test_client()

    response = client.post("/schedule_exams", json={**_schedule_payload(), "term": "even"})

    assert response.status_code == 400


def test_unsatisfiable_schedule_returns_conflict_with_partial() -> None:
    client = _build_test_client()

    response = client.post("/schedule_exams", json=_schedule_payload(window_end="2026-10-20"))

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["failed_unit"] == "BT-101"
    assert detail["unplaced_codes"] == ["BT-101"]
    assert [item["course_code"] for item in detail["partial_schedule"]] == ["BT-201"]


def test_window_without_exam_days_is_rejected() -> None:
    client = _build_test_client()
    payload = _schedule_payload()
    payload["window_start"] = "2026-10-24"
    payload["window_end"] = "2026-10-25"

    response = client.post("/schedule_exams", json=payload)

    assert response.status_code == 400


def test_reversed_window_fails_request_validation() -> None:
    client = _build_test_client()
    payload = _schedule_payload(window_end="2026-10-01")

    response = client.post("/schedule_exams", json=payload)

    assert response.status_code == 422


def test_assign_then_swap_seats_round_trip() -> None:
    client = _build_test_client()
    students = [
        {"student_id": f"{code.lower()}{index}", "course_code": code}
        for code in ("C", "D")
        for index in range(1, 4)
    ]

    response = client.post(
        "/assign_seats",
        json={
            "exam_date": "2026-10-19",
            "students": students,
            "venues": [{"venue_id": "HALL-1", "rows": 2, "columns": 4}],
        },
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["seated_count"] == 4
    assert body["unassigned_count"] == 2
    plan = body["plans"][0]
    assert plan["capacity"] == 8
    assert plan["seats"][0][0]["seat_label"] == "R1C1"
    assert plan["seats"][0][1] is None

    swap_response = client.post(
        "/swap_seats",
        json={
            "plans": body["plans"],
            "first": {"venue_id": "HALL-1", "row": 1, "column": 1},
            "second": {"venue_id": "HALL-1", "row": 1, "column": 2},
        },
    )

    assert swap_response.status_code == 200, swap_response.text
    swapped = swap_response.json()["plans"][0]
    assert swapped["seats"][0][0] is None
    assert swapped["seats"][0][1]["student_id"] == "c1"
    assert swapped["seats"][0][1]["seat_label"] == "R1C2"


def test_assign_seats_without_students_returns_not_found() -> None:
    client = _build_test_client()

    response = client.post(
        "/assign_seats",
        json={
            "exam_date": "2026-10-19",
            "students": [],
            "venues": [{"venue_id": "HALL-1", "rows": 2, "columns": 4}],
        },
    )

    assert response.status_code == 404


def test_swap_with_unknown_venue_is_bad_request() -> None:
    client = _build_test_client()
    plan = {
        "venue_id": "HALL-1",
        "rows": 1,
        "columns": 2,
        "capacity": 2,
        "seats": [[None, None]],
    }

    response = client.post(
        "/swap_seats",
        json={
            "plans": [plan],
            "first": {"venue_id": "HALL-2", "row": 1, "column": 1},
            "second": {"venue_id": "HALL-1", "row": 1, "column": 1},
        },
    )

    assert response.status_code == 400


def test_swap_rejects_plans_with_repeated_venue_ids() -> None:
    client = _build_test_client()
    plan = {
        "venue_id": "HALL-1",
        "rows": 1,
        "columns": 2,
        "capacity": 2,
        "seats": [[None, None]],
    }

    response = client.post(
        "/swap_seats",
        json={
            "plans": [plan, dict(plan)],
            "first": {"venue_id": "HALL-1", "row": 1, "column": 1},
            "second": {"venue_id": "HALL-1", "row": 1, "column": 2},
        },
    )

    assert response.status_code == 422
    assert "venue_id values must be unique" in response.text
