from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from campus_scheduler.scheduling.time_grid import ShiftWindow, TimeGrid

COURSE_TYPES = ("theory", "lab", "project")
DEFAULT_CLASS_DURATIONS = {"theory": 75, "lab": 100, "project": 100}
CLASS_TYPE_BY_COURSE_TYPE = {"theory": "Lecture", "lab": "Lab", "project": "Workshop"}


@dataclass(frozen=True)
class BatchInfo:
    id: str
    name: str
    shift: str
    department_id: str | None
    current_semester: int
    student_count: int | None = None


@dataclass(frozen=True)
class CourseOffering:
    batch_id: str
    course_id: str
    session_course_id: str | None
    code: str
    name: str
    course_type: str
    semester: int

    @property
    def needs_lab_room(self) -> bool:
        return self.course_type in {"lab", "project"}


@dataclass(frozen=True)
class InstructorInfo:
    id: str
    name: str | None = None


@dataclass(frozen=True)
class ClassroomInfo:
    id: str
    room_number: str
    capacity: int | None = None
    is_lab: bool = False
    building: str | None = None


@dataclass(frozen=True)
class DirectorySnapshot:
    """Read-only view of everything a generation run needs for its scope."""

    session_id: str
    batches: tuple[BatchInfo, ...]
    offerings: tuple[CourseOffering, ...]
    classrooms: tuple[ClassroomInfo, ...]
    instructors: Mapping[tuple[str, str], tuple[InstructorInfo, ...]] = field(default_factory=dict)

    def offerings_for(self, batch_id: str) -> list[CourseOffering]:
        return [item for item in self.offerings if item.batch_id == batch_id]

    def instructors_for(self, batch_id: str, course_id: str) -> tuple[InstructorInfo, ...]:
        return tuple(self.instructors.get((batch_id, course_id), ()))


@dataclass(frozen=True)
class SchedulingConfig:
    durations: Mapping[str, int]
    working_days: tuple[str, ...]
    windows: Mapping[str, ShiftWindow]
    preferred_rooms: Mapping[str, str] = field(default_factory=dict)

    def duration_for(self, course_type: str) -> int:
        if course_type in self.durations:
            return self.durations[course_type]
        return DEFAULT_CLASS_DURATIONS.get(course_type, DEFAULT_CLASS_DURATIONS["theory"])

    def window_for(self, shift: str) -> ShiftWindow:
        return self.windows.get(shift) or self.windows["day"]

    def grid_for(self, shift: str, course_type: str) -> TimeGrid:
        return TimeGrid(self.window_for(shift), self.duration_for(course_type), self.working_days)

    def preferred_room_for(self, course_type: str) -> str | None:
        key = "lab" if course_type in {"lab", "project"} else "theory"
        return self.preferred_rooms.get(key)
