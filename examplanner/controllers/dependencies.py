"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import Request

from examplanner.services.date_assignment_service import DateAssignmentService
from examplanner.services.seat_assignment_service import SeatAssignmentService
from examplanner.utils.config import get_settings


def get_date_assignment_service(request: Request) -> DateAssignmentService:
    service = getattr(request.app.state, "date_assignment_service", None)
    if service is None:
        service = DateAssignmentService(settings=get_settings())
        request.app.state.date_assignment_service = service
    return service


def get_seat_assignment_service(request: Request) -> SeatAssignmentService:
    service = getattr(request.app.state, "seat_assignment_service", None)
    if service is None:
        service = SeatAssignmentService()
        request.app.state.seat_assignment_service = service
    return service
