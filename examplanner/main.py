"""FastAPI application bootstrap and service wiring."""

from __future__ import annotations

from fastapi import FastAPI

from examplanner.controllers.scheduling_controller import router as scheduling_router
from examplanner.services.date_assignment_service import DateAssignmentService
from examplanner.services.seat_assignment_service import SeatAssignmentService
from examplanner.utils.config import get_settings
from examplanner.utils.logger import get_logger


logger = get_logger(__name__)


def create_app() -> FastAPI:
    """
    Build and wire the FastAPI application.

    Both engines are stateless, so one service instance per app is shared by
    every request; each call still builds its own search context.
    """
    settings = get_settings()

    date_assignment_service = DateAssignmentService(settings=settings)
    seat_assignment_service = SeatAssignmentService()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
    )
    app.include_router(scheduling_router)

    app.state.date_assignment_service = date_assignment_service
    app.state.seat_assignment_service = seat_assignment_service

    logger.info("Application created | app_name=%s | version=%s", settings.app_name, settings.app_version)
    return app


app = create_app()
