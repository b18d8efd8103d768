"""Exam-day seat assignment with course interleaving and checkerboard spacing."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable, Iterator, Optional

from examplanner.domain.models import (
    SeatingPlan,
    SeatingResult,
    SeatOccupant,
    StudentSitting,
    UnassignedStudent,
    Venue,
)
from examplanner.utils.logger import get_logger


logger = get_logger(__name__)

UNAFFILIATED = None


class SeatingError(Exception):
    """Base failure of the seat assignment engine."""


class SeatingValidationError(SeatingError):
    """Raised when venue geometry or seat coordinates are invalid."""


class NoEnrollmentError(SeatingError):
    """Raised when there is nobody to seat on the requested date."""


class SeatSwapError(SeatingValidationError):
    """Raised when a swap references an unknown venue or an out-of-range seat."""


@dataclass(frozen=True)
class SeatRef:
    """A 1-indexed seat coordinate inside one venue."""

    venue_id: str
    row: int
    column: int


@dataclass(frozen=True)
class CapacityCheck:
    is_valid: bool
    capacity: int
    shortfall: int
    message: str


def checkerboard_positions(rows: int, columns: int) -> Iterator[tuple[int, int]]:
    """Yield 0-based (row, column) seats: row r uses columns r%2, r%2+2, ..."""
    for row in range(rows):
        for column in range(row % 2, columns, 2):
            yield row, column


def interleave_by_course(sittings: Iterable[StudentSitting]) -> list[StudentSitting]:
    """Round-robin one student per course group, groups in course-code order."""
    groups: dict[str, list[StudentSitting]] = defaultdict(list)
    for sitting in sittings:
        groups[sitting.course_code].append(sitting)
    queues = [groups[code] for code in sorted(groups)]

    order: list[StudentSitting] = []
    position = 0
    while True:
        drawn = False
        for queue in queues:
            if position < len(queue):
                order.append(queue[position])
                drawn = True
        if not drawn:
            return order
        position += 1


def _dedupe(sittings: Iterable[StudentSitting]) -> list[StudentSitting]:
    seen: set[tuple[str, str]] = set()
    unique: list[StudentSitting] = []
    for sitting in sittings:
        key = (sitting.student_id, sitting.course_code)
        if key in seen:
            continue
        seen.add(key)
        unique.append(sitting)
    return unique


def _validate_venues(venues: list[Venue]) -> None:
    seen: set[str] = set()
    for venue in venues:
        if venue.rows <= 0 or venue.columns <= 0:
            raise SeatingValidationError(
                f"venue {venue.venue_id} must have positive rows and columns"
            )
        if venue.venue_id in seen:
            raise SeatingValidationError(f"duplicate venue_id={venue.venue_id}")
        seen.add(venue.venue_id)


def _department_order(departments: Iterable[Optional[str]]) -> list[Optional[str]]:
    present = set(departments)
    named = sorted(department for department in present if department is not None)
    if UNAFFILIATED in present:
        return [*named, UNAFFILIATED]
    return named


class _VenueFill:
    """Grid under construction plus the seats the checkerboard has left."""

    def __init__(self, venue: Venue) -> None:
        self.venue = venue
        self.grid: list[list[Optional[SeatOccupant]]] = [
            [None] * venue.columns for _ in range(venue.rows)
        ]
        self._free = checkerboard_positions(venue.rows, venue.columns)

    def take_seat(self, sitting: StudentSitting) -> bool:
        position = next(self._free, None)
        if position is None:
            return False
        row, column = position
        self.grid[row][column] = SeatOccupant(
            student_id=sitting.student_id,
            course_code=sitting.course_code,
            row=row + 1,
            column=column + 1,
            student_name=sitting.student_name,
            enrollment_no=sitting.enrollment_no,
            department=sitting.department,
        )
        return True

    def to_plan(self) -> SeatingPlan:
        return SeatingPlan(
            venue_id=self.venue.venue_id,
            venue_name=self.venue.venue_name,
            rows=self.venue.rows,
            columns=self.venue.columns,
            seats=tuple(tuple(row) for row in self.grid),
        )


def assign_seats(
    exam_date: date,
    sittings: Iterable[StudentSitting],
    venues: Iterable[Venue],
) -> SeatingResult:
    """Seat one exam day's students; overflow is reported, never raised."""
    students = _dedupe(sittings)
    if not students:
        raise NoEnrollmentError(f"No students sitting exams on {exam_date.isoformat()}")
    venue_list = list(venues)
    _validate_venues(venue_list)

    students_by_department: dict[Optional[str], list[StudentSitting]] = defaultdict(list)
    for sitting in students:
        students_by_department[sitting.department].append(sitting)
    fills = {venue.venue_id: _VenueFill(venue) for venue in venue_list}
    venues_by_department: dict[Optional[str], list[_VenueFill]] = defaultdict(list)
    for venue in venue_list:
        venues_by_department[venue.department].append(fills[venue.venue_id])

    unassigned: list[UnassignedStudent] = []
    for department in _department_order(students_by_department):
        department_venues = venues_by_department.get(department) or venues_by_department.get(
            UNAFFILIATED, []
        )
        remaining_venues = iter(department_venues)
        current = next(remaining_venues, None)
        overflow: list[UnassignedStudent] = []
        for sitting in interleave_by_course(students_by_department[department]):
            while current is not None and not current.take_seat(sitting):
                current = next(remaining_venues, None)
            if current is None:
                overflow.append(_unassigned(sitting))
        unassigned.extend(overflow)
        if not department_venues or overflow:
            logger.warning(
                "Seating overflow | exam_date=%s | department=%s | venues=%s | unassigned=%s",
                exam_date.isoformat(),
                department,
                len(department_venues),
                len(overflow),
            )

    result = SeatingResult(
        exam_date=exam_date,
        plans=[fills[venue.venue_id].to_plan() for venue in venue_list],
        unassigned=unassigned,
    )
    logger.info(
        "Seat assignment completed | exam_date=%s | students=%s | seated=%s | unassigned=%s",
        exam_date.isoformat(),
        len(students),
        result.seated_count,
        result.unassigned_count,
    )
    return result


def _unassigned(sitting: StudentSitting) -> UnassignedStudent:
    return UnassignedStudent(
        student_id=sitting.student_id,
        course_code=sitting.course_code,
        student_name=sitting.student_name,
        department=sitting.department,
    )


def _locate(plans: list[SeatingPlan], ref: SeatRef) -> int:
    for index, plan in enumerate(plans):
        if plan.venue_id == ref.venue_id:
            if not (1 <= ref.row <= plan.rows and 1 <= ref.column <= plan.columns):
                raise SeatSwapError(
                    f"seat R{ref.row}C{ref.column} is outside venue {ref.venue_id} "
                    f"({plan.rows}x{plan.columns})"
                )
            return index
    raise SeatSwapError(f"unknown venue_id={ref.venue_id}")


def _with_seat(plan: SeatingPlan, ref: SeatRef, occupant: Optional[SeatOccupant]) -> SeatingPlan:
    if occupant is not None:
        occupant = replace(occupant, row=ref.row, column=ref.column)
    seats = [list(row) for row in plan.seats]
    seats[ref.row - 1][ref.column - 1] = occupant
    return replace(plan, seats=tuple(tuple(row) for row in seats))


def swap_seats(plans: Iterable[SeatingPlan], first: SeatRef, second: SeatRef) -> list[SeatingPlan]:
    """Exchange two seats' occupants, relabelling whoever moved.

    Either seat may be empty, which makes the swap a move. The input plans
    are left untouched.
    """
    updated = list(plans)
    first_index = _locate(updated, first)
    second_index = _locate(updated, second)
    first_occupant = updated[first_index].seats[first.row - 1][first.column - 1]
    second_occupant = updated[second_index].seats[second.row - 1][second.column - 1]

    updated[first_index] = _with_seat(updated[first_index], first, second_occupant)
    updated[second_index] = _with_seat(updated[second_index], second, first_occupant)
    logger.info(
        "Seats swapped | first=%s:R%sC%s | second=%s:R%sC%s",
        first.venue_id,
        first.row,
        first.column,
        second.venue_id,
        second.row,
        second.column,
    )
    return updated


def validate_venue_capacity(venue: Venue, student_count: int) -> CapacityCheck:
    """Compare a head count against the seats the checkerboard can use."""
    capacity = venue.checkerboard_capacity
    shortfall = max(0, student_count - capacity)
    if shortfall == 0:
        message = f"Venue can accommodate {student_count} students (capacity: {capacity})"
    else:
        message = (
            f"Venue capacity ({capacity}) is less than student count ({student_count}). "
            f"{shortfall} students will be unassigned."
        )
    return CapacityCheck(
        is_valid=shortfall == 0,
        capacity=capacity,
        shortfall=shortfall,
        message=message,
    )


def render_layout(plan: SeatingPlan, empty: str = "-") -> list[list[str]]:
    return [
        [seat.course_code if seat is not None else empty for seat in row]
        for row in plan.seats
    ]


class SeatAssignmentService:
    """Thin facade used by the HTTP layer."""

    def assign(
        self,
        *,
        exam_date: date,
        sittings: Iterable[StudentSitting],
        venues: Iterable[Venue],
    ) -> SeatingResult:
        return assign_seats(exam_date, sittings, venues)

    def swap(
        self,
        *,
        plans: Iterable[SeatingPlan],
        first: SeatRef,
        second: SeatRef,
    ) -> list[SeatingPlan]:
        return swap_seats(plans, first, second)
