import itertools

from campus_scheduler.scheduling.constraints import (
    CHECK_ORDER,
    ConflictKind,
    OccupancyArena,
    ScheduledClassEntry,
    check_conflict,
    entries_conflict,
    find_conflicts,
)


def make_entry(
    *,
    batch="batch-a",
    course="course-1",
    instructor="teacher-1",
    room="room-1",
    day="Saturday",
    start=480,
    end=555,
) -> ScheduledClassEntry:
    return ScheduledClassEntry(
        batch_id=batch,
        course_id=course,
        instructor_id=instructor,
        classroom_id=room,
        day=day,
        start=start,
        end=end,
    )


def test_check_order_is_room_then_instructor_then_batch():
    assert CHECK_ORDER == (ConflictKind.room, ConflictKind.instructor, ConflictKind.batch)


def test_room_is_reported_before_instructor_and_batch():
    placed = make_entry()
    arena = OccupancyArena([placed])
    candidate = make_entry(course="course-2", start=500, end=575)
    assert check_conflict(candidate, arena) is ConflictKind.room


def test_instructor_conflict_in_a_different_room():
    arena = OccupancyArena([make_entry()])
    candidate = make_entry(batch="batch-b", room="room-2")
    assert check_conflict(candidate, arena) is ConflictKind.instructor


def test_batch_conflict_with_different_room_and_instructor():
    arena = OccupancyArena([make_entry()])
    candidate = make_entry(course="course-2", instructor="teacher-2", room="room-2")
    assert check_conflict(candidate, arena) is ConflictKind.batch


def test_touching_endpoints_do_not_conflict():
    arena = OccupancyArena([make_entry(start=480, end=555)])
    assert check_conflict(make_entry(start=555, end=630), arena) is ConflictKind.none
    assert check_conflict(make_entry(start=405, end=480), arena) is ConflictKind.none


def test_same_time_on_another_day_is_free():
    arena = OccupancyArena([make_entry(day="Saturday")])
    assert check_conflict(make_entry(day="Sunday"), arena) is ConflictKind.none


def test_check_conflict_does_not_commit():
    arena = OccupancyArena()
    candidate = make_entry()
    assert check_conflict(candidate, arena) is ConflictKind.none
    assert len(arena) == 0
    arena.commit(candidate)
    assert len(arena) == 1
    assert arena.booked(ConflictKind.room, "room-1", "Saturday") == [candidate]


def test_pairwise_conflict_is_symmetric():
    entries = [
        make_entry(),
        make_entry(batch="batch-b", room="room-2", start=500, end=600),
        make_entry(course="course-2", instructor="teacher-2", room="room-2", start=555, end=630),
        make_entry(batch="batch-c", instructor="teacher-3", start=540, end=560),
        make_entry(batch="batch-d", instructor="teacher-4", room="room-4", day="Sunday"),
    ]
    for first, second in itertools.product(entries, repeat=2):
        assert entries_conflict(first, second) == entries_conflict(second, first)


def test_find_conflicts_reports_each_colliding_resource():
    first = make_entry()
    second = make_entry(batch="batch-b", course="course-2", start=500, end=575)
    third = make_entry(batch="batch-c", instructor="teacher-9", room="room-9", start=555, end=630)

    conflicts = find_conflicts([first, second, third])

    kinds = sorted(kind.value for kind, _, _ in conflicts)
    assert kinds == ["instructor", "room"]
    assert all({a, b} == {first, second} for _, a, b in conflicts)
