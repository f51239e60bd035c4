"""Greedy assignment engine.

Placement requests are processed one at a time in ``PLACEMENT_ORDER``. Each
request takes the first conflict-free (slot, room, instructor) candidate; when
none exists it is reported as unscheduled and the run moves on. There is no
backtracking across requests, so the order fully determines the outcome.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from time import perf_counter

from campus_scheduler.core.exceptions import ValidationFailure
from campus_scheduler.scheduling.constraints import (
    CONFLICT_DEPTH,
    ConflictKind,
    OccupancyArena,
    ScheduledClassEntry,
    check_conflict,
)
from campus_scheduler.scheduling.snapshot import (
    CLASS_TYPE_BY_COURSE_TYPE,
    BatchInfo,
    ClassroomInfo,
    CourseOffering,
    DirectorySnapshot,
    InstructorInfo,
    SchedulingConfig,
)
from campus_scheduler.scheduling.validator import ValidationResult, validate_prerequisites

logger = logging.getLogger(__name__)

PLACEMENT_ORDER = "batch-name, batch-id, course-code, course-id ascending"


class UnscheduledReason(str, Enum):
    no_time_slot = "no_time_slot"
    no_room = "no_room"
    no_instructor = "no_instructor"
    room_conflict = "room_conflict"
    instructor_conflict = "instructor_conflict"
    batch_conflict = "batch_conflict"
    time_limit = "time_limit"


REASON_BY_CONFLICT = {
    ConflictKind.room: UnscheduledReason.room_conflict,
    ConflictKind.instructor: UnscheduledReason.instructor_conflict,
    ConflictKind.batch: UnscheduledReason.batch_conflict,
}

REASON_MESSAGES = {
    UnscheduledReason.no_time_slot: "No time slot of the required duration fits the shift window",
    UnscheduledReason.no_room: "No active classroom matches the course type and batch size",
    UnscheduledReason.no_instructor: "No active instructor is assigned to this course",
    UnscheduledReason.room_conflict: "Every suitable classroom is already booked at the available times",
    UnscheduledReason.instructor_conflict: "The assigned instructor is already teaching at every free time",
    UnscheduledReason.batch_conflict: "The batch already has classes at every remaining time",
    UnscheduledReason.time_limit: "Generation time limit reached before this course was placed",
}


@dataclass(frozen=True)
class PlacementRequest:
    batch: BatchInfo
    offering: CourseOffering

    @property
    def sort_key(self) -> tuple:
        return (self.batch.name, self.batch.id, self.offering.code, self.offering.course_id)


@dataclass(frozen=True)
class UnscheduledCourse:
    request: PlacementRequest
    reason: UnscheduledReason

    @property
    def message(self) -> str:
        return REASON_MESSAGES[self.reason]

    def to_dict(self) -> dict:
        offering = self.request.offering
        return {
            "batchId": self.request.batch.id,
            "batchName": self.request.batch.name,
            "courseId": offering.course_id,
            "courseCode": offering.code,
            "courseName": offering.name,
            "courseType": offering.course_type,
            "reason": self.reason.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class PlacedClass:
    request: PlacementRequest
    entry: ScheduledClassEntry
    classroom: ClassroomInfo
    instructor: InstructorInfo

    def to_dict(self) -> dict:
        offering = self.request.offering
        return {
            "batchId": self.entry.batch_id,
            "batchName": self.request.batch.name,
            "courseId": offering.course_id,
            "sessionCourseId": offering.session_course_id,
            "courseCode": offering.code,
            "courseName": offering.name,
            "courseType": offering.course_type,
            "instructorId": self.instructor.id,
            "instructorName": self.instructor.name,
            "classroomId": self.classroom.id,
            "roomNumber": self.classroom.room_number,
            "day": self.entry.day,
            "startTime": self.entry.start_time,
            "endTime": self.entry.end_time,
            "classType": self.entry.class_type,
            "shift": self.entry.shift,
        }


@dataclass
class GenerationStats:
    scheduled: int = 0
    unscheduled: int = 0
    total: int = 0
    conflicts: list[dict] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "scheduled": self.scheduled,
            "unscheduled": self.unscheduled,
            "total": self.total,
            "conflicts": list(self.conflicts),
            "warnings": list(self.warnings),
        }


@dataclass
class GenerationResult:
    placed: list[PlacedClass]
    unscheduled: list[UnscheduledCourse]
    stats: GenerationStats
    timed_out: bool = False
    runtime_ms: int = 0

    @property
    def entries(self) -> list[ScheduledClassEntry]:
        return [item.entry for item in self.placed]

    def schedule_data(self) -> list[dict]:
        return [item.to_dict() for item in self.placed]

    def unscheduled_data(self) -> list[dict]:
        return [item.to_dict() for item in self.unscheduled]


def _batch_fits(room: ClassroomInfo, batch: BatchInfo) -> bool:
    if not room.capacity or not batch.student_count:
        return True
    return room.capacity >= batch.student_count


class AssignmentEngine:
    def __init__(
        self,
        snapshot: DirectorySnapshot,
        config: SchedulingConfig,
        *,
        arena: OccupancyArena | None = None,
        time_limit_seconds: float | None = None,
        clock: Callable[[], float] = perf_counter,
    ) -> None:
        self.snapshot = snapshot
        self.config = config
        self.arena = arena if arena is not None else OccupancyArena()
        self.time_limit_seconds = time_limit_seconds
        self.clock = clock
        self._deadline: float | None = None

    def placement_requests(self) -> list[PlacementRequest]:
        batches = {batch.id: batch for batch in self.snapshot.batches}
        requests: list[PlacementRequest] = []
        seen: set[tuple[str, str]] = set()
        for offering in self.snapshot.offerings:
            batch = batches.get(offering.batch_id)
            key = (offering.batch_id, offering.course_id)
            if batch is None or key in seen:
                continue
            seen.add(key)
            requests.append(PlacementRequest(batch=batch, offering=offering))
        return sorted(requests, key=lambda item: item.sort_key)

    def candidate_rooms(self, request: PlacementRequest) -> list[ClassroomInfo]:
        rooms = list(self.snapshot.classrooms)
        if request.offering.needs_lab_room:
            typed = [room for room in rooms if room.is_lab]
        else:
            typed = [room for room in rooms if not room.is_lab]
        # Fall back to any room when the institution has no room of the matching kind.
        rooms = typed or rooms
        rooms = [room for room in rooms if _batch_fits(room, request.batch)]

        preferred_id = self.config.preferred_room_for(request.offering.course_type)
        return sorted(
            rooms,
            key=lambda room: (0 if room.id == preferred_id else 1, room.room_number, room.id),
        )

    def candidate_instructors(self, request: PlacementRequest) -> list[InstructorInfo]:
        instructors = self.snapshot.instructors_for(request.batch.id, request.offering.course_id)
        return sorted({item.id: item for item in instructors}.values(), key=lambda item: item.id)

    def _expired(self) -> bool:
        return self._deadline is not None and self.clock() >= self._deadline

    def place(self, request: PlacementRequest) -> PlacedClass | UnscheduledReason:
        offering = request.offering
        grid = self.config.grid_for(request.batch.shift, offering.course_type)
        slots = list(grid)
        if not slots:
            return UnscheduledReason.no_time_slot
        rooms = self.candidate_rooms(request)
        if not rooms:
            return UnscheduledReason.no_room
        instructors = self.candidate_instructors(request)
        if not instructors:
            return UnscheduledReason.no_instructor

        class_type = CLASS_TYPE_BY_COURSE_TYPE.get(offering.course_type, "Lecture")
        slot_blockers: Counter[ConflictKind] = Counter()
        for slot in slots:
            if self._expired():
                return UnscheduledReason.time_limit
            deepest: ConflictKind | None = None
            for room in rooms:
                for instructor in instructors:
                    candidate = ScheduledClassEntry(
                        batch_id=request.batch.id,
                        course_id=offering.course_id,
                        instructor_id=instructor.id,
                        classroom_id=room.id,
                        day=slot.day,
                        start=slot.start,
                        end=slot.end,
                        class_type=class_type,
                        session_course_id=offering.session_course_id,
                        course_type=offering.course_type,
                        shift=slot.shift,
                    )
                    conflict = check_conflict(candidate, self.arena)
                    if conflict is ConflictKind.none:
                        self.arena.commit(candidate)
                        return PlacedClass(request=request, entry=candidate, classroom=room, instructor=instructor)
                    if deepest is None or CONFLICT_DEPTH[conflict] > CONFLICT_DEPTH[deepest]:
                        deepest = conflict
            slot_blockers[deepest] += 1

        blocker = max(slot_blockers, key=lambda kind: (slot_blockers[kind], CONFLICT_DEPTH[kind]))
        return REASON_BY_CONFLICT[blocker]

    def run(self) -> GenerationResult:
        started = self.clock()
        if self.time_limit_seconds is not None:
            self._deadline = started + self.time_limit_seconds

        requests = self.placement_requests()
        placed: list[PlacedClass] = []
        unscheduled: list[UnscheduledCourse] = []
        timed_out = False

        for request in requests:
            if timed_out or self._expired():
                timed_out = True
                unscheduled.append(UnscheduledCourse(request=request, reason=UnscheduledReason.time_limit))
                continue
            outcome = self.place(request)
            if isinstance(outcome, PlacedClass):
                placed.append(outcome)
                continue
            if outcome is UnscheduledReason.time_limit:
                timed_out = True
            unscheduled.append(UnscheduledCourse(request=request, reason=outcome))
            logger.info(
                "SCHEDULE PLACEMENT SKIPPED | batch_id=%s | course_code=%s | reason=%s",
                request.batch.id,
                request.offering.code,
                outcome.value,
            )

        stats = GenerationStats(scheduled=len(placed), unscheduled=len(unscheduled), total=len(requests))
        if timed_out:
            cut_off = sum(1 for item in unscheduled if item.reason is UnscheduledReason.time_limit)
            stats.warnings.append(
                f"Generation stopped after {self.time_limit_seconds}s; {cut_off} course(s) left unscheduled"
            )
            logger.warning(
                "SCHEDULE GENERATION TIME LIMIT | limit_s=%s | scheduled=%s | remaining=%s",
                self.time_limit_seconds,
                len(placed),
                cut_off,
            )
        runtime_ms = int((self.clock() - started) * 1000)
        return GenerationResult(
            placed=placed,
            unscheduled=unscheduled,
            stats=stats,
            timed_out=timed_out,
            runtime_ms=runtime_ms,
        )


def generate_schedule(
    snapshot: DirectorySnapshot,
    config: SchedulingConfig,
    *,
    arena: OccupancyArena | None = None,
    time_limit_seconds: float | None = None,
) -> tuple[ValidationResult, GenerationResult]:
    """Validate, then place.

    Raises ``ValidationFailure`` before any placement if validation fails.
    ``arena`` may be pre-seeded with bookings the run must work around; they
    are not part of the returned schedule.
    """
    validation = validate_prerequisites(snapshot, config)
    if not validation.valid:
        raise ValidationFailure(
            "Schedule prerequisites are not met",
            details=validation.to_dict(),
        )
    result = AssignmentEngine(snapshot, config, arena=arena, time_limit_seconds=time_limit_seconds).run()
    result.stats.warnings = list(validation.warnings) + result.stats.warnings
    return validation, result
