import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from campus_scheduler.db.base import Base


class ScheduleStatus(str, Enum):
    active = "active"
    closed = "closed"
    archived = "archived"


class ClassType(str, Enum):
    lecture = "Lecture"
    tutorial = "Tutorial"
    lab = "Lab"
    seminar = "Seminar"
    workshop = "Workshop"
    other = "Other"


class CourseSchedule(Base):
    """Live weekly schedule record; only applying a proposal creates these."""

    __tablename__ = "course_schedules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id: Mapped[str] = mapped_column(ForeignKey("academic_sessions.id"), nullable=False, index=True)
    batch_id: Mapped[str] = mapped_column(ForeignKey("batches.id"), nullable=False, index=True)
    session_course_id: Mapped[str | None] = mapped_column(ForeignKey("session_courses.id"), nullable=True)
    course_id: Mapped[str] = mapped_column(String(36), nullable=False)
    teacher_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    classroom_id: Mapped[str | None] = mapped_column(ForeignKey("classrooms.id"), nullable=True, index=True)
    days_of_week: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    class_type: Mapped[ClassType] = mapped_column(
        SAEnum(ClassType, name="class_type", values_callable=lambda items: [item.value for item in items]),
        nullable=False,
        default=ClassType.lecture,
    )
    status: Mapped[ScheduleStatus] = mapped_column(
        SAEnum(ScheduleStatus, name="schedule_status"),
        nullable=False,
        default=ScheduleStatus.active,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    proposal_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
