"""Weekly time grid.

Turns a shift window (start, end and an optional break) into the ordered
candidate slots for one class duration. Times are handled as minutes since
midnight; ``parse_time_to_minutes``/``minutes_to_time`` convert at the edges.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

WEEK_DAYS: tuple[str, ...] = (
    "Saturday",
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
)
DAY_VALUES = frozenset(WEEK_DAYS)
DAY_INDEX = {day: index for index, day in enumerate(WEEK_DAYS)}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def ranges_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    # Half-open intervals: touching endpoints do not overlap.
    return start_a < end_b and start_b < end_a


def resolve_working_days(off_days: Iterable[str], working_days: Iterable[str] | None = None) -> list[str]:
    allowed = set(working_days) if working_days is not None else DAY_VALUES
    excluded = set(off_days)
    return [day for day in WEEK_DAYS if day in allowed and day not in excluded]


@dataclass(frozen=True)
class ShiftWindow:
    shift: str
    start: int
    end: int
    break_start: int | None = None
    break_end: int | None = None

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(f"{self.shift} shift must start before it ends")
        if (self.break_start is None) != (self.break_end is None):
            raise ValueError(f"{self.shift} shift break needs both a start and an end")
        if self.has_break and not (self.start < self.break_start < self.break_end < self.end):
            raise ValueError(f"{self.shift} shift break must fall strictly inside the shift window")

    @classmethod
    def from_times(
        cls,
        shift: str,
        start_time: str,
        end_time: str,
        break_start: str | None = None,
        break_end: str | None = None,
    ) -> "ShiftWindow":
        return cls(
            shift=shift,
            start=parse_time_to_minutes(start_time),
            end=parse_time_to_minutes(end_time),
            break_start=parse_time_to_minutes(break_start) if break_start else None,
            break_end=parse_time_to_minutes(break_end) if break_end else None,
        )

    @property
    def has_break(self) -> bool:
        return self.break_start is not None and self.break_end is not None

    def usable_minutes(self) -> int:
        total = self.end - self.start
        if self.has_break:
            total -= self.break_end - self.break_start
        return total

    def overlaps_break(self, start: int, end: int) -> bool:
        if not self.has_break:
            return False
        return ranges_overlap(start, end, self.break_start, self.break_end)


@dataclass(frozen=True)
class TimeSlot:
    day: str
    start: int
    end: int
    shift: str

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end)

    @property
    def duration(self) -> int:
        return self.end - self.start


def iter_day_slots(window: ShiftWindow, duration: int, day: str) -> Iterator[TimeSlot]:
    if duration <= 0:
        raise ValueError("Class duration must be positive")
    cursor = window.start
    while cursor + duration <= window.end:
        if window.overlaps_break(cursor, cursor + duration):
            # Resume after the break; the chunk that touched it is dropped.
            cursor = max(cursor, window.break_end)
            continue
        yield TimeSlot(day=day, start=cursor, end=cursor + duration, shift=window.shift)
        cursor += duration


class TimeGrid:
    """Candidate slots for one shift and duration across the working days."""

    def __init__(self, window: ShiftWindow, duration: int, working_days: Iterable[str]) -> None:
        if duration <= 0:
            raise ValueError("Class duration must be positive")
        self.window = window
        self.duration = duration
        self.working_days = sorted(set(working_days), key=DAY_INDEX.__getitem__)

    def day_slots(self, day: str) -> Iterator[TimeSlot]:
        if day not in self.working_days:
            return iter(())
        return iter_day_slots(self.window, self.duration, day)

    def __iter__(self) -> Iterator[TimeSlot]:
        for day in self.working_days:
            yield from iter_day_slots(self.window, self.duration, day)

    def slots_per_day(self) -> int:
        if not self.working_days:
            return 0
        return sum(1 for _ in iter_day_slots(self.window, self.duration, self.working_days[0]))

    def slot_count(self) -> int:
        return self.slots_per_day() * len(self.working_days)

    def is_feasible(self) -> bool:
        return self.slot_count() > 0
