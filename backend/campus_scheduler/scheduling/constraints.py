from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from campus_scheduler.scheduling.time_grid import minutes_to_time, ranges_overlap


class ConflictKind(str, Enum):
    none = "none"
    room = "room"
    instructor = "instructor"
    batch = "batch"


# Fixed check order. The engine relies on it when it explains why a request
# could not be placed, so changing it changes reported reasons.
CHECK_ORDER: tuple[ConflictKind, ...] = (ConflictKind.room, ConflictKind.instructor, ConflictKind.batch)
CONFLICT_DEPTH = {kind: index for index, kind in enumerate(CHECK_ORDER)}


@dataclass(frozen=True)
class ScheduledClassEntry:
    batch_id: str
    course_id: str
    instructor_id: str
    classroom_id: str
    day: str
    start: int
    end: int
    class_type: str = "Lecture"
    session_course_id: str | None = None
    course_type: str = "theory"
    shift: str = "day"

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end)


def _resource(entry: ScheduledClassEntry, kind: ConflictKind) -> str:
    if kind is ConflictKind.room:
        return entry.classroom_id
    if kind is ConflictKind.instructor:
        return entry.instructor_id
    return entry.batch_id


def entries_overlap(first: ScheduledClassEntry, second: ScheduledClassEntry) -> bool:
    return first.day == second.day and ranges_overlap(first.start, first.end, second.start, second.end)


def entries_conflict(first: ScheduledClassEntry, second: ScheduledClassEntry) -> ConflictKind:
    """Pairwise check; symmetric in its arguments."""
    if not entries_overlap(first, second):
        return ConflictKind.none
    for kind in CHECK_ORDER:
        if _resource(first, kind) == _resource(second, kind):
            return kind
    return ConflictKind.none


class OccupancyArena:
    """Placed entries of one generation run, indexed by (resource, day)."""

    def __init__(self, entries: Iterable[ScheduledClassEntry] = ()) -> None:
        self._occupancy: dict[ConflictKind, dict[tuple[str, str], list[ScheduledClassEntry]]] = {
            kind: defaultdict(list) for kind in CHECK_ORDER
        }
        self._entries: list[ScheduledClassEntry] = []
        for entry in entries:
            self.commit(entry)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[ScheduledClassEntry]:
        return list(self._entries)

    def booked(self, kind: ConflictKind, resource_id: str, day: str) -> list[ScheduledClassEntry]:
        return list(self._occupancy[kind].get((resource_id, day), ()))

    def commit(self, entry: ScheduledClassEntry) -> None:
        for kind in CHECK_ORDER:
            self._occupancy[kind][(_resource(entry, kind), entry.day)].append(entry)
        self._entries.append(entry)


def check_conflict(candidate: ScheduledClassEntry, arena: OccupancyArena) -> ConflictKind:
    """Return the first dimension (room, instructor, batch) already booked for the candidate's time."""
    for kind in CHECK_ORDER:
        for placed in arena.booked(kind, _resource(candidate, kind), candidate.day):
            if ranges_overlap(candidate.start, candidate.end, placed.start, placed.end):
                return kind
    return ConflictKind.none


def find_conflicts(entries: Iterable[ScheduledClassEntry]) -> list[tuple[ConflictKind, ScheduledClassEntry, ScheduledClassEntry]]:
    by_day: dict[str, list[ScheduledClassEntry]] = defaultdict(list)
    for entry in entries:
        by_day[entry.day].append(entry)

    conflicts: list[tuple[ConflictKind, ScheduledClassEntry, ScheduledClassEntry]] = []
    for day_entries in by_day.values():
        ordered = sorted(day_entries, key=lambda item: (item.start, item.end))
        for index, first in enumerate(ordered):
            for second in ordered[index + 1:]:
                if second.start >= first.end:
                    break
                # A pair can collide on several resources; report each one.
                for kind in CHECK_ORDER:
                    if _resource(first, kind) == _resource(second, kind):
                        conflicts.append((kind, first, second))
    return conflicts
