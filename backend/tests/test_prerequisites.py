from campus_scheduler.scheduling.snapshot import (
    BatchInfo,
    ClassroomInfo,
    CourseOffering,
    DirectorySnapshot,
    InstructorInfo,
    SchedulingConfig,
)
from campus_scheduler.scheduling.time_grid import ShiftWindow
from campus_scheduler.scheduling.validator import validate_prerequisites


def default_config(**overrides) -> SchedulingConfig:
    values = {
        "durations": {"theory": 75, "lab": 100, "project": 100},
        "working_days": ("Saturday", "Sunday", "Wednesday", "Thursday"),
        "windows": {
            "day": ShiftWindow.from_times("day", "08:30", "15:00", "12:00", "13:00"),
            "evening": ShiftWindow.from_times("evening", "15:30", "21:00"),
        },
    }
    values.update(overrides)
    return SchedulingConfig(**values)


def offering(batch_id: str, course_id: str, code: str, course_type: str = "theory") -> CourseOffering:
    return CourseOffering(
        batch_id=batch_id,
        course_id=course_id,
        session_course_id=f"sc-{course_id}",
        code=code,
        name=f"{code} course",
        course_type=course_type,
        semester=1,
    )


def test_single_course_without_instructor_is_reported_once():
    snapshot = DirectorySnapshot(
        session_id="session-1",
        batches=(BatchInfo("batch-a", "CSE-A", "day", "dept-1", 1),),
        offerings=(offering("batch-a", "course-1", "CSE101"),),
        classrooms=(ClassroomInfo("room-1", "R101", 60),),
        instructors={},
    )

    result = validate_prerequisites(snapshot, default_config())

    assert result.valid is False
    assert len(result.unassigned_courses) == 1
    assert result.unassigned_courses[0].course_code == "CSE101"
    payload = result.to_dict()
    assert payload["valid"] is False
    assert payload["unassignedCourses"][0]["batchId"] == "batch-a"


def test_every_unassigned_pair_listed_exactly_once():
    batches = (
        BatchInfo("batch-a", "CSE-A", "day", "dept-1", 1),
        BatchInfo("batch-b", "CSE-B", "day", "dept-1", 1),
    )
    offerings = tuple(
        offering(batch.id, course_id, code)
        for batch in batches
        for course_id, code in (("course-1", "CSE101"), ("course-2", "CSE102"), ("course-3", "CSE103"))
    )
    # Duplicate rows for the same pair must not duplicate the report.
    offerings = offerings + (offering("batch-b", "course-3", "CSE103"),)
    instructors = {
        ("batch-a", "course-1"): (InstructorInfo("teacher-1"),),
        ("batch-b", "course-2"): (InstructorInfo("teacher-2"),),
    }
    snapshot = DirectorySnapshot("session-1", batches, offerings, (ClassroomInfo("room-1", "R101"),), instructors)

    result = validate_prerequisites(snapshot, default_config())

    pairs = [(item.batch_id, item.course_id) for item in result.unassigned_courses]
    assert sorted(pairs) == [
        ("batch-a", "course-2"),
        ("batch-a", "course-3"),
        ("batch-b", "course-1"),
        ("batch-b", "course-3"),
    ]
    assert len(pairs) == len(set(pairs))


def test_validation_is_idempotent():
    snapshot = DirectorySnapshot(
        session_id="session-1",
        batches=(BatchInfo("batch-a", "CSE-A", "day", "dept-1", 1),),
        offerings=(offering("batch-a", "course-1", "CSE101"),),
        classrooms=(),
        instructors={},
    )
    config = default_config()
    assert validate_prerequisites(snapshot, config).to_dict() == validate_prerequisites(snapshot, config).to_dict()


def test_empty_scope_is_an_error():
    snapshot = DirectorySnapshot("session-1", (), (), (ClassroomInfo("room-1", "R101"),))
    result = validate_prerequisites(snapshot, default_config())
    assert result.valid is False
    assert result.errors == ["No active batches found for the selected scope"]


def test_missing_classrooms_and_degenerate_window_are_errors():
    snapshot = DirectorySnapshot(
        session_id="session-1",
        batches=(BatchInfo("batch-a", "CSE-A", "day", "dept-1", 1),),
        offerings=(offering("batch-a", "course-1", "CSE101"),),
        classrooms=(),
        instructors={("batch-a", "course-1"): (InstructorInfo("teacher-1"),)},
    )
    config = default_config(durations={"theory": 300, "lab": 100, "project": 100})

    result = validate_prerequisites(snapshot, config)

    assert result.valid is False
    assert result.unassigned_courses == []
    assert "No active classrooms are available for scheduling" in result.errors
    assert any("do not fit the day shift" in error for error in result.errors)


def test_no_working_days_is_an_error():
    snapshot = DirectorySnapshot(
        session_id="session-1",
        batches=(BatchInfo("batch-a", "CSE-A", "day", "dept-1", 1),),
        offerings=(offering("batch-a", "course-1", "CSE101"),),
        classrooms=(ClassroomInfo("room-1", "R101"),),
        instructors={("batch-a", "course-1"): (InstructorInfo("teacher-1"),)},
    )
    result = validate_prerequisites(snapshot, default_config(working_days=()))
    assert result.valid is False
    assert any("working day" in error for error in result.errors)


def test_batch_without_courses_and_short_labs_only_warn():
    snapshot = DirectorySnapshot(
        session_id="session-1",
        batches=(
            BatchInfo("batch-a", "CSE-A", "day", "dept-1", 1),
            BatchInfo("batch-b", "CSE-B", "day", "dept-1", 3),
        ),
        offerings=(offering("batch-a", "course-1", "CSE101"),),
        classrooms=(ClassroomInfo("room-1", "R101"),),
        instructors={("batch-a", "course-1"): (InstructorInfo("teacher-1"),)},
    )
    config = default_config(durations={"theory": 75, "lab": 60, "project": 100})

    result = validate_prerequisites(snapshot, config)

    assert result.valid is True
    assert result.errors == []
    assert any("CSE-B" in warning for warning in result.warnings)
    assert any(warning.startswith("Lab duration") for warning in result.warnings)
