import pytest

from campus_scheduler.core.exceptions import ValidationFailure
from campus_scheduler.scheduling.constraints import OccupancyArena, ScheduledClassEntry, find_conflicts
from campus_scheduler.scheduling.engine import (
    AssignmentEngine,
    UnscheduledReason,
    generate_schedule,
)
from campus_scheduler.scheduling.snapshot import (
    BatchInfo,
    ClassroomInfo,
    CourseOffering,
    DirectorySnapshot,
    InstructorInfo,
    SchedulingConfig,
)
from campus_scheduler.scheduling.time_grid import ShiftWindow


def config_for(window: ShiftWindow, working_days=("Saturday",), **overrides) -> SchedulingConfig:
    values = {
        "durations": {"theory": 75, "lab": 100, "project": 100},
        "working_days": tuple(working_days),
        "windows": {"day": window, "evening": ShiftWindow.from_times("evening", "15:30", "21:00")},
    }
    values.update(overrides)
    return SchedulingConfig(**values)


def offering(batch_id: str, course_id: str, code: str, course_type: str = "theory") -> CourseOffering:
    return CourseOffering(
        batch_id=batch_id,
        course_id=course_id,
        session_course_id=f"sc-{batch_id}-{course_id}",
        code=code,
        name=f"{code} course",
        course_type=course_type,
        semester=1,
    )


def two_batches_one_instructor() -> DirectorySnapshot:
    batches = (
        BatchInfo("batch-a", "CSE-A", "day", "dept-1", 1),
        BatchInfo("batch-b", "CSE-B", "day", "dept-1", 1),
    )
    return DirectorySnapshot(
        session_id="session-1",
        batches=batches,
        offerings=(
            offering("batch-a", "course-1", "CSE101"),
            offering("batch-b", "course-1", "CSE101"),
        ),
        classrooms=(ClassroomInfo("room-1", "R101", 60), ClassroomInfo("room-2", "R102", 60)),
        instructors={
            ("batch-a", "course-1"): (InstructorInfo("teacher-1", "Dr. Rahman"),),
            ("batch-b", "course-1"): (InstructorInfo("teacher-1", "Dr. Rahman"),),
        },
    )


def test_shared_instructor_at_only_slot_leaves_one_course_unscheduled():
    single_slot = ShiftWindow.from_times("day", "08:00", "09:15")
    validation, result = generate_schedule(two_batches_one_instructor(), config_for(single_slot))

    assert validation.valid is True
    assert result.stats.scheduled == 1
    assert result.stats.unscheduled == 1
    assert result.stats.total == 2
    assert result.placed[0].request.batch.id == "batch-a"
    unscheduled = result.unscheduled[0]
    assert unscheduled.request.batch.id == "batch-b"
    assert unscheduled.reason is UnscheduledReason.instructor_conflict
    assert result.unscheduled_data()[0]["reason"] == "instructor_conflict"


def test_generated_schedule_never_double_books():
    window = ShiftWindow.from_times("day", "08:30", "15:00", "12:00", "13:00")
    batches = tuple(BatchInfo(f"batch-{index}", f"CSE-{index}", "day", "dept-1", 1, 40) for index in range(4))
    courses = (("course-1", "CSE101", "theory"), ("course-2", "CSE102", "theory"), ("course-3", "CSE103L", "lab"))
    offerings = tuple(
        offering(batch.id, course_id, code, course_type) for batch in batches for course_id, code, course_type in courses
    )
    instructors = {
        (batch.id, course_id): (InstructorInfo(f"teacher-{course_id}"),)
        for batch in batches
        for course_id, _, _ in courses
    }
    snapshot = DirectorySnapshot(
        "session-1",
        batches,
        offerings,
        (
            ClassroomInfo("room-1", "R101", 60),
            ClassroomInfo("room-2", "R102", 60),
            ClassroomInfo("lab-1", "L201", 60, is_lab=True),
        ),
        instructors,
    )

    _, result = generate_schedule(snapshot, config_for(window, ("Saturday", "Sunday")))

    assert result.stats.total == 12
    assert result.stats.scheduled + result.stats.unscheduled == 12
    assert find_conflicts(result.entries) == []
    for item in result.placed:
        assert item.classroom.is_lab == (item.request.offering.course_type == "lab")
        assert not window.overlaps_break(item.entry.start, item.entry.end)


def test_generation_is_deterministic():
    window = ShiftWindow.from_times("day", "08:30", "15:00", "12:00", "13:00")
    snapshot = two_batches_one_instructor()
    config = config_for(window, ("Saturday", "Sunday"))

    first = generate_schedule(snapshot, config)[1].schedule_data()
    second = generate_schedule(snapshot, config)[1].schedule_data()

    assert first == second
    assert [item["batchName"] for item in first] == ["CSE-A", "CSE-B"]
    assert first[0]["startTime"] == "08:30"
    assert first[1]["startTime"] == "09:45"


def test_unplaceable_course_is_reported_not_raised():
    window = ShiftWindow.from_times("day", "08:00", "09:15")
    snapshot = DirectorySnapshot(
        session_id="session-1",
        batches=(BatchInfo("batch-a", "CSE-A", "day", "dept-1", 1, 120),),
        offerings=(offering("batch-a", "course-1", "CSE101"),),
        classrooms=(ClassroomInfo("room-1", "R101", 60),),
        instructors={("batch-a", "course-1"): (InstructorInfo("teacher-1"),)},
    )

    _, result = generate_schedule(snapshot, config_for(window))

    assert result.stats.scheduled == 0
    assert result.unscheduled[0].reason is UnscheduledReason.no_room


def test_course_without_fitting_slot_is_unscheduled():
    window = ShiftWindow.from_times("day", "08:00", "09:15")
    snapshot = DirectorySnapshot(
        session_id="session-1",
        batches=(BatchInfo("batch-a", "CSE-A", "evening", "dept-1", 1),),
        offerings=(offering("batch-a", "course-1", "CSE101"),),
        classrooms=(ClassroomInfo("room-1", "R101"),),
        instructors={("batch-a", "course-1"): (InstructorInfo("teacher-1"),)},
    )
    # Validation would reject the degenerate evening window, so drive the engine directly.
    config = config_for(window, windows={"day": window, "evening": ShiftWindow.from_times("evening", "15:30", "16:00")})

    result = AssignmentEngine(snapshot, config).run()

    assert result.unscheduled[0].reason is UnscheduledReason.no_time_slot


def test_reserved_bookings_are_respected():
    window = ShiftWindow.from_times("day", "08:00", "10:30")
    reserved = OccupancyArena(
        [
            ScheduledClassEntry(
                batch_id="batch-z",
                course_id="course-9",
                instructor_id="teacher-9",
                classroom_id="room-1",
                day="Saturday",
                start=480,
                end=555,
            )
        ]
    )
    snapshot = DirectorySnapshot(
        session_id="session-1",
        batches=(BatchInfo("batch-a", "CSE-A", "day", "dept-1", 1),),
        offerings=(offering("batch-a", "course-1", "CSE101"),),
        classrooms=(ClassroomInfo("room-1", "R101"),),
        instructors={("batch-a", "course-1"): (InstructorInfo("teacher-1"),)},
    )

    _, result = generate_schedule(snapshot, config_for(window), arena=reserved)

    assert [item.entry.start_time for item in result.placed] == ["09:15"]
    assert len(result.schedule_data()) == 1


def test_preferred_room_is_tried_first():
    window = ShiftWindow.from_times("day", "08:00", "09:15")
    snapshot = DirectorySnapshot(
        session_id="session-1",
        batches=(BatchInfo("batch-a", "CSE-A", "day", "dept-1", 1),),
        offerings=(offering("batch-a", "course-1", "CSE101"),),
        classrooms=(ClassroomInfo("room-1", "R101"), ClassroomInfo("room-2", "R102")),
        instructors={("batch-a", "course-1"): (InstructorInfo("teacher-1"),)},
    )

    _, result = generate_schedule(snapshot, config_for(window, preferred_rooms={"theory": "room-2"}))

    assert result.placed[0].classroom.id == "room-2"


def test_time_limit_keeps_partial_work():
    ticks = iter(range(0, 1000))
    window = ShiftWindow.from_times("day", "08:30", "15:00", "12:00", "13:00")
    snapshot = two_batches_one_instructor()

    engine = AssignmentEngine(
        snapshot,
        config_for(window, ("Saturday", "Sunday")),
        time_limit_seconds=3,
        clock=lambda: next(ticks),
    )
    result = engine.run()

    assert result.timed_out is True
    assert result.stats.scheduled == 1
    assert result.unscheduled[0].reason is UnscheduledReason.time_limit
    assert result.stats.warnings


def test_invalid_scope_fails_before_placement():
    window = ShiftWindow.from_times("day", "08:00", "09:15")
    snapshot = DirectorySnapshot(
        session_id="session-1",
        batches=(BatchInfo("batch-a", "CSE-A", "day", "dept-1", 1),),
        offerings=(offering("batch-a", "course-1", "CSE101"),),
        classrooms=(ClassroomInfo("room-1", "R101"),),
        instructors={},
    )

    with pytest.raises(ValidationFailure) as exc_info:
        generate_schedule(snapshot, config_for(window))

    assert exc_info.value.status_code == 422
    assert len(exc_info.value.unassigned_courses) == 1
    assert exc_info.value.details["valid"] is False


def test_time_limit_warning_counts_only_courses_cut_off():
    ticks = iter(range(0, 1000))
    window = ShiftWindow.from_times("day", "08:00", "09:15")
    batches = tuple(BatchInfo(f"batch-{name}", f"CSE-{name.upper()}", "day", "dept-1", 1) for name in "abc")
    snapshot = DirectorySnapshot(
        session_id="session-1",
        batches=batches,
        offerings=tuple(offering(batch.id, "course-1", "CSE101") for batch in batches),
        classrooms=(ClassroomInfo("room-1", "R101"), ClassroomInfo("room-2", "R102")),
        instructors={(batch.id, "course-1"): (InstructorInfo("teacher-1"),) for batch in batches},
    )

    result = AssignmentEngine(snapshot, config_for(window), time_limit_seconds=5, clock=lambda: next(ticks)).run()

    assert [item.reason for item in result.unscheduled] == [
        UnscheduledReason.instructor_conflict,
        UnscheduledReason.time_limit,
    ]
    assert result.stats.unscheduled == 2
    assert result.stats.warnings == ["Generation stopped after 5s; 1 course(s) left unscheduled"]
