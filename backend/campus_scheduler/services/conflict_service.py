from __future__ import annotations

from campus_scheduler.models.course_schedule import CourseSchedule
from campus_scheduler.scheduling.constraints import (
    ConflictKind,
    OccupancyArena,
    ScheduledClassEntry,
    check_conflict,
    find_conflicts,
)
from campus_scheduler.services.live_schedule import schedule_entries

CONFLICT_TYPES = {
    ConflictKind.room: "room_conflict",
    ConflictKind.instructor: "teacher_conflict",
    ConflictKind.batch: "batch_conflict",
}


class ConflictService:
    def __init__(self, schedules: list[CourseSchedule]):
        self.schedules = schedules
        # Keyed by object identity: entries from different records may compare equal.
        self._records: dict[int, CourseSchedule] = {}
        self.entries: list[ScheduledClassEntry] = []
        for record in schedules:
            for entry in schedule_entries(record):
                self._records[id(entry)] = record
                self.entries.append(entry)

    def detect_conflicts(self) -> list[dict]:
        conflicts: list[dict] = []
        seen: set[tuple[str, str, str]] = set()
        for kind, first, second in find_conflicts(self.entries):
            record_a = self._records[id(first)]
            record_b = self._records[id(second)]
            if record_a.id == record_b.id:
                continue
            key = (CONFLICT_TYPES[kind], *sorted((record_a.id, record_b.id)))
            if key in seen:
                continue
            seen.add(key)
            conflicts.append(
                {
                    "type": CONFLICT_TYPES[kind],
                    "day": first.day,
                    "schedule1": record_a,
                    "schedule2": record_b,
                }
            )
        return conflicts

    def conflicts_against(self, candidates: list[ScheduledClassEntry]) -> list[dict]:
        """Report candidates that collide with these live schedules."""
        arena = OccupancyArena(self.entries)
        collisions: list[dict] = []
        for candidate in candidates:
            kind = check_conflict(candidate, arena)
            if kind is ConflictKind.none:
                continue
            collisions.append(
                {
                    "type": CONFLICT_TYPES[kind],
                    "batchId": candidate.batch_id,
                    "courseId": candidate.course_id,
                    "day": candidate.day,
                    "startTime": candidate.start_time,
                    "endTime": candidate.end_time,
                    "classroomId": candidate.classroom_id,
                    "instructorId": candidate.instructor_id,
                }
            )
        return collisions
