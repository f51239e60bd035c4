from campus_scheduler.models.academic import (  # noqa: F401
    AcademicSession,
    Batch,
    Course,
    CourseType,
    Department,
    InstructorAssignment,
    SessionCourse,
    Shift,
)
from campus_scheduler.models.activity_log import ActivityLog  # noqa: F401
from campus_scheduler.models.classroom import LAB_ROOM_TYPES, Classroom, RoomType  # noqa: F401
from campus_scheduler.models.course_schedule import ClassType, CourseSchedule, ScheduleStatus  # noqa: F401
from campus_scheduler.models.schedule_proposal import ProposalStatus, ScheduleProposal  # noqa: F401
