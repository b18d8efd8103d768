"""HTTP controller layer for exam date and seat assignment."""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator, model_validator

from examplanner.controllers.dependencies import (
    get_date_assignment_service,
    get_seat_assignment_service,
)
from examplanner.domain.calendar import detect_term, semester_display
from examplanner.domain.models import (
    Course,
    ScheduleItem,
    SeatingPlan,
    SeatOccupant,
    StudentSitting,
    Venue,
)
from examplanner.services.date_assignment_service import (
    DateAssignmentService,
    NoValidDatesError,
    SchedulingValidationError,
    UnsatisfiableScheduleError,
)
from examplanner.services.seat_assignment_service import (
    NoEnrollmentError,
    SeatAssignmentService,
    SeatingValidationError,
    SeatRef,
)
from examplanner.utils.config import get_settings
from examplanner.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["scheduling"])


class CourseRequest(BaseModel):
    """Input DTO validated before entering service layer."""

    course_id: str = Field(min_length=1)
    course_code: str = Field(min_length=1)
    semester: int = Field(ge=1, le=12)
    course_name: Optional[str] = None
    program_type: str = "B.Tech"
    gap_days: Optional[int] = Field(default=None, ge=0)
    teacher_name: Optional[str] = None
    department: Optional[str] = None
    lab: Optional[bool] = None

    def to_domain(self) -> Course:
        return Course(**self.model_dump())


class ScheduleExamsRequest(BaseModel):
    courses: list[CourseRequest] = Field(min_length=1)
    enrollments: dict[str, list[str]] = Field(default_factory=dict)
    window_start: date
    window_end: date
    holidays: list[date] = Field(default_factory=list)
    max_backtracks: Optional[int] = Field(default=None, ge=0)
    time_limit_seconds: Optional[float] = Field(default=None, gt=0.0)
    term: Optional[Literal["odd", "even"]] = None

    @model_validator(mode="after")
    def validate_window(self) -> "ScheduleExamsRequest":
        if self.window_start > self.window_end:
            raise ValueError("window_start must not be after window_end")
        return self


class ScheduleItemResponse(BaseModel):
    unit_id: str
    course_code: str
    source_codes: list[str]
    course_name: Optional[str]
    teacher_name: str
    exam_date: date
    day_of_week: str
    time_slot: str
    semester: int = Field(ge=1, le=12)
    semester_label: str
    program_type: str
    gap_days: int = Field(ge=0)
    is_first_paper: bool

    @classmethod
    def from_domain(cls, item: ScheduleItem) -> "ScheduleItemResponse":
        return cls(
            unit_id=item.unit_id,
            course_code=item.course_code,
            source_codes=list(item.source_codes),
            course_name=item.course_name,
            teacher_name=item.teacher_name,
            exam_date=item.exam_date,
            day_of_week=item.day_of_week,
            time_slot=item.time_slot,
            semester=item.semester,
            semester_label=semester_display(item.semester),
            program_type=item.program_type,
            gap_days=item.gap_days,
            is_first_paper=item.is_first_paper,
        )


class ScheduleExamsResponse(BaseModel):
    items: list[ScheduleItemResponse]
    total_items: int = Field(ge=0)
    term: Optional[Literal["odd", "even"]] = None


class StudentSittingRequest(BaseModel):
    student_id: str = Field(min_length=1)
    course_code: str = Field(min_length=1)
    student_name: Optional[str] = None
    enrollment_no: Optional[str] = None
    department: Optional[str] = None
    semester: Optional[int] = Field(default=None, ge=1, le=12)

    def to_domain(self) -> StudentSitting:
        return StudentSitting(**self.model_dump())


class VenueRequest(BaseModel):
    venue_id: str = Field(min_length=1)
    rows: int = Field(gt=0)
    columns: int = Field(gt=0)
    venue_name: Optional[str] = None
    department: Optional[str] = None

    def to_domain(self) -> Venue:
        return Venue(**self.model_dump())


class AssignSeatsRequest(BaseModel):
    exam_date: date
    students: list[StudentSittingRequest]
    venues: list[VenueRequest]

    @field_validator("venues")
    @classmethod
    def validate_unique_venues(cls, value: list[VenueRequest]) -> list[VenueRequest]:
        venue_ids = [venue.venue_id for venue in value]
        if len(venue_ids) != len(set(venue_ids)):
            raise ValueError("venue_id values must be unique")
        return value


class SeatOccupantPayload(BaseModel):
    student_id: str
    course_code: str
    student_name: Optional[str] = None
    enrollment_no: Optional[str] = None
    department: Optional[str] = None
    row: int = Field(ge=1)
    column: int = Field(ge=1)
    seat_label: str


class SeatingPlanPayload(BaseModel):
    venue_id: str
    venue_name: Optional[str] = None
    rows: int = Field(gt=0)
    columns: int = Field(gt=0)
    capacity: int = Field(ge=0)
    seats: list[list[Optional[SeatOccupantPayload]]]

    @model_validator(mode="after")
    def validate_grid_shape(self) -> "SeatingPlanPayload":
        if len(self.seats) != self.rows or any(len(row) != self.columns for row in self.seats):
            raise ValueError("seats grid must match rows x columns")
        return self

    @classmethod
    def from_domain(cls, plan: SeatingPlan) -> "SeatingPlanPayload":
        return cls(
            venue_id=plan.venue_id,
            venue_name=plan.venue_name,
            rows=plan.rows,
            columns=plan.columns,
            capacity=plan.capacity,
            seats=[
                [
                    None
                    if seat is None
                    else SeatOccupantPayload(
                        student_id=seat.student_id,
                        course_code=seat.course_code,
                        student_name=seat.student_name,
                        enrollment_no=seat.enrollment_no,
                        department=seat.department,
                        row=seat.row,
                        column=seat.column,
                        seat_label=seat.seat_label,
                    )
                    for seat in row
                ]
                for row in plan.seats
            ],
        )

    def to_domain(self) -> SeatingPlan:
        # grid position wins over any row/column the client echoed back
        return SeatingPlan(
            venue_id=self.venue_id,
            venue_name=self.venue_name,
            rows=self.rows,
            columns=self.columns,
            seats=tuple(
                tuple(
                    None
                    if seat is None
                    else SeatOccupant(
                        student_id=seat.student_id,
                        course_code=seat.course_code,
                        row=row_index + 1,
                        column=column_index + 1,
                        student_name=seat.student_name,
                        enrollment_no=seat.enrollment_no,
                        department=seat.department,
                    )
                    for column_index, seat in enumerate(row)
                )
                for row_index, row in enumerate(self.seats)
            ),
        )


class UnassignedStudentResponse(BaseModel):
    student_id: str
    course_code: str
    student_name: Optional[str] = None
    department: Optional[str] = None


class AssignSeatsResponse(BaseModel):
    exam_date: date
    plans: list[SeatingPlanPayload]
    unassigned: list[UnassignedStudentResponse]
    seated_count: int = Field(ge=0)
    unassigned_count: int = Field(ge=0)


class SeatRefRequest(BaseModel):
    venue_id: str = Field(min_length=1)
    row: int = Field(ge=1)
    column: int = Field(ge=1)

    def to_domain(self) -> SeatRef:
        return SeatRef(venue_id=self.venue_id, row=self.row, column=self.column)


class SwapSeatsRequest(BaseModel):
    plans: list[SeatingPlanPayload] = Field(min_length=1)
    first: SeatRefRequest
    second: SeatRefRequest

    @field_validator("plans")
    @classmethod
    def validate_unique_venues(cls, value: list[SeatingPlanPayload]) -> list[SeatingPlanPayload]:
        venue_ids = [plan.venue_id for plan in value]
        if len(venue_ids) != len(set(venue_ids)):
            raise ValueError("venue_id values must be unique")
        return value


class SwapSeatsResponse(BaseModel):
    plans: list[SeatingPlanPayload]


class HealthResponse(BaseModel):
    status: str
    app_name: str
    app_version: str


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        status="ok",
        app_name=settings.app_name,
        app_version=settings.app_version,
    )


@router.post(
    "/schedule_exams",
    response_model=ScheduleExamsResponse,
    status_code=status.HTTP_200_OK,
)
async def schedule_exams(
    payload: ScheduleExamsRequest,
    service: DateAssignmentService = Depends(get_date_assignment_service),
) -> ScheduleExamsResponse:
    """Assign every course one exam date inside the requested window."""
    try:
        items = service.schedule(
            courses=[course.to_domain() for course in payload.courses],
            enrollment_map=payload.enrollments,
            window_start=payload.window_start,
            window_end=payload.window_end,
            holidays=payload.holidays,
            max_backtracks=payload.max_backtracks,
            time_limit_seconds=payload.time_limit_seconds,
            term=payload.term,
        )
        return ScheduleExamsResponse(
            items=[ScheduleItemResponse.from_domain(item) for item in items],
            total_items=len(items),
            term=detect_term(item.semester for item in items),
        )
    except SchedulingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except NoValidDatesError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except UnsatisfiableScheduleError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "failed_unit": exc.failed_unit,
                "unplaced_codes": exc.unplaced_codes,
                "backtracks": exc.backtracks,
                "budget_exhausted": exc.budget_exhausted,
                "partial_schedule": [
                    ScheduleItemResponse.from_domain(item).model_dump(mode="json")
                    for item in exc.partial_items
                ],
            },
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected scheduling failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to schedule exams",
        ) from exc


@router.post(
    "/assign_seats",
    response_model=AssignSeatsResponse,
    status_code=status.HTTP_200_OK,
)
async def assign_seats(
    payload: AssignSeatsRequest,
    service: SeatAssignmentService = Depends(get_seat_assignment_service),
) -> AssignSeatsResponse:
    """Lay out one exam day's sitting; overflow comes back as ``unassigned``."""
    try:
        result = service.assign(
            exam_date=payload.exam_date,
            sittings=[student.to_domain() for student in payload.students],
            venues=[venue.to_domain() for venue in payload.venues],
        )
        return AssignSeatsResponse(
            exam_date=result.exam_date,
            plans=[SeatingPlanPayload.from_domain(plan) for plan in result.plans],
            unassigned=[
                UnassignedStudentResponse(
                    student_id=student.student_id,
                    course_code=student.course_code,
                    student_name=student.student_name,
                    department=student.department,
                )
                for student in result.unassigned
            ],
            seated_count=result.seated_count,
            unassigned_count=result.unassigned_count,
        )
    except SeatingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except NoEnrollmentError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected seat assignment failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to assign seats",
        ) from exc


@router.post(
    "/swap_seats",
    response_model=SwapSeatsResponse,
    status_code=status.HTTP_200_OK,
)
async def swap_seats(
    payload: SwapSeatsRequest,
    service: SeatAssignmentService = Depends(get_seat_assignment_service),
) -> SwapSeatsResponse:
    """Exchange two seats of a previously produced plan."""
    try:
        plans = service.swap(
            plans=[plan.to_domain() for plan in payload.plans],
            first=payload.first.to_domain(),
            second=payload.second.to_domain(),
        )
        return SwapSeatsResponse(plans=[SeatingPlanPayload.from_domain(plan) for plan in plans])
    except SeatingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected seat swap failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to swap seats",
        ) from exc
