import pytest

from campus_scheduler.models.course_schedule import ClassType, CourseSchedule, ScheduleStatus
from campus_scheduler.scheduling.constraints import ScheduledClassEntry
from campus_scheduler.services.conflict_service import ConflictService


def make_schedule(record_id, *, batch="batch-a", teacher="teacher-1", room="room-1", days=("Saturday",), start="08:30", end="09:45"):
    return CourseSchedule(
        id=record_id,
        session_id="session-1",
        batch_id=batch,
        course_id=f"course-{record_id}",
        teacher_id=teacher,
        classroom_id=room,
        days_of_week=list(days),
        start_time=start,
        end_time=end,
        class_type=ClassType.lecture,
        status=ScheduleStatus.active,
        is_active=True,
    )


@pytest.fixture
def schedules():
    return [
        make_schedule("s1"),
        make_schedule("s2", batch="batch-b", teacher="teacher-2", days=("Saturday", "Sunday")),
        make_schedule("s3", batch="batch-c", teacher="teacher-2", room="room-3", days=("Sunday",), start="09:00", end="10:15"),
        make_schedule("s4", batch="batch-d", teacher="teacher-4", room="room-4", start="09:45", end="11:00"),
    ]


def test_detect_room_conflict(schedules):
    conflicts = ConflictService(schedules[:2]).detect_conflicts()

    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert conflict["type"] == "room_conflict"
    assert conflict["day"] == "Saturday"
    assert {conflict["schedule1"].id, conflict["schedule2"].id} == {"s1", "s2"}


def test_detect_teacher_conflict_on_shared_day(schedules):
    conflicts = ConflictService(schedules[1:3]).detect_conflicts()

    assert [item["type"] for item in conflicts] == ["teacher_conflict"]
    assert conflicts[0]["day"] == "Sunday"


def test_back_to_back_classes_do_not_conflict(schedules):
    assert ConflictService([schedules[0], schedules[3]]).detect_conflicts() == []


def test_unassigned_resources_never_collide():
    first = make_schedule("s1", teacher=None, room=None)
    second = make_schedule("s2", batch="batch-b", teacher=None, room=None)
    assert ConflictService([first, second]).detect_conflicts() == []


def test_conflicts_against_candidates(schedules):
    service = ConflictService([schedules[0]])
    candidates = [
        ScheduledClassEntry(
            batch_id="batch-x",
            course_id="course-x",
            instructor_id="teacher-1",
            classroom_id="room-9",
            day="Saturday",
            start=540,
            end=615,
        ),
        ScheduledClassEntry(
            batch_id="batch-y",
            course_id="course-y",
            instructor_id="teacher-9",
            classroom_id="room-9",
            day="Saturday",
            start=585,
            end=660,
        ),
    ]

    collisions = service.conflicts_against(candidates)

    assert collisions == [
        {
            "type": "teacher_conflict",
            "batchId": "batch-x",
            "courseId": "course-x",
            "day": "Saturday",
            "startTime": "09:00",
            "endTime": "10:15",
            "classroomId": "room-9",
            "instructorId": "teacher-1",
        }
    ]
