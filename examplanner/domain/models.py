"""Domain models shared by the date and seat assignment engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Course:
    course_id: str
    course_code: str
    semester: int
    course_name: Optional[str] = None
    program_type: str = "B.Tech"
    gap_days: Optional[int] = None
    teacher_name: Optional[str] = None
    department: Optional[str] = None
    lab: Optional[bool] = None

    @property
    def is_lab(self) -> bool:
        if self.lab is not None:
            return self.lab
        return "L" in self.course_code


@dataclass(frozen=True)
class SchedulingUnit:
    """One course after code merging; the thing the date engine places."""

    unit_id: str
    course_code: str
    source_codes: tuple[str, ...]
    course_name: Optional[str]
    teacher_name: str
    semester: int
    program_type: str
    gap_days: int
    is_lab: bool
    department: Optional[str]
    input_index: int


@dataclass(frozen=True)
class ScheduleItem:
    unit_id: str
    course_code: str
    source_codes: tuple[str, ...]
    course_name: Optional[str]
    teacher_name: str
    exam_date: date
    day_of_week: str
    time_slot: str
    semester: int
    program_type: str
    gap_days: int
    is_first_paper: bool = False


@dataclass(frozen=True)
class Venue:
    venue_id: str
    rows: int
    columns: int
    venue_name: Optional[str] = None
    department: Optional[str] = None

    @property
    def capacity(self) -> int:
        return self.rows * self.columns

    @property
    def checkerboard_capacity(self) -> int:
        even_row_seats = (self.columns + 1) // 2
        odd_row_seats = self.columns // 2
        even_rows = (self.rows + 1) // 2
        odd_rows = self.rows // 2
        return even_rows * even_row_seats + odd_rows * odd_row_seats


@dataclass(frozen=True)
class StudentSitting:
    """A student sitting one course's paper on the exam date being seated."""

    student_id: str
    course_code: str
    student_name: Optional[str] = None
    enrollment_no: Optional[str] = None
    department: Optional[str] = None
    semester: Optional[int] = None


@dataclass(frozen=True)
class SeatOccupant:
    student_id: str
    course_code: str
    row: int
    column: int
    student_name: Optional[str] = None
    enrollment_no: Optional[str] = None
    department: Optional[str] = None

    @property
    def seat_label(self) -> str:
        return f"R{self.row}C{self.column}"


@dataclass(frozen=True)
class SeatingPlan:
    venue_id: str
    venue_name: Optional[str]
    rows: int
    columns: int
    seats: tuple[tuple[Optional[SeatOccupant], ...], ...]

    @property
    def capacity(self) -> int:
        return self.rows * self.columns

    @property
    def occupants(self) -> list[SeatOccupant]:
        return [seat for row in self.seats for seat in row if seat is not None]

    @property
    def occupied_count(self) -> int:
        return len(self.occupants)


@dataclass(frozen=True)
class UnassignedStudent:
    student_id: str
    course_code: str
    student_name: Optional[str] = None
    department: Optional[str] = None


@dataclass(frozen=True)
class SeatingResult:
    exam_date: date
    plans: list[SeatingPlan] = field(default_factory=list)
    unassigned: list[UnassignedStudent] = field(default_factory=list)

    @property
    def seated_count(self) -> int:
        return sum(plan.occupied_count for plan in self.plans)

    @property
    def unassigned_count(self) -> int:
        return len(self.unassigned)
