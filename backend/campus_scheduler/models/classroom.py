import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from campus_scheduler.db.base import Base


class RoomType(str, Enum):
    lecture_hall = "Lecture Hall"
    laboratory = "Laboratory"
    seminar_room = "Seminar Room"
    computer_lab = "Computer Lab"
    conference_room = "Conference Room"
    virtual = "Virtual"
    other = "Other"


LAB_ROOM_TYPES = frozenset({RoomType.laboratory, RoomType.computer_lab})


class Classroom(Base):
    __tablename__ = "classrooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_number: Mapped[str] = mapped_column(String(50), index=True, nullable=False)
    building_name: Mapped[str] = mapped_column(String(200), nullable=False)
    floor: Mapped[int | None] = mapped_column(Integer, nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    room_type: Mapped[RoomType] = mapped_column(
        SAEnum(RoomType, name="room_type", values_callable=lambda items: [item.value for item in items]),
        nullable=False,
        default=RoomType.lecture_hall,
    )
    department_id: Mapped[str | None] = mapped_column(ForeignKey("departments.id"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_under_maintenance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    maintenance_notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
