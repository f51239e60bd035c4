from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from campus_scheduler.models.course_schedule import ClassType, ScheduleStatus
from campus_scheduler.models.schedule_proposal import ProposalStatus
from campus_scheduler.scheduling.snapshot import DEFAULT_CLASS_DURATIONS, SchedulingConfig
from campus_scheduler.scheduling.time_grid import (
    DAY_VALUES,
    TIME_PATTERN,
    ShiftWindow,
    parse_time_to_minutes,
    resolve_working_days,
)

SelectionMode = Literal["all", "department", "multi_batch", "single_batch"]
DEFAULT_OFF_DAYS = ["Monday", "Tuesday", "Friday"]


def _unique(values: list[str]) -> list[str]:
    unique: list[str] = []
    seen: set[str] = set()
    for item in values:
        cleaned = item.strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        unique.append(cleaned)
    return unique


class ClassDurations(BaseModel):
    theory: int | None = Field(default=None, ge=15, le=480)
    lab: int | None = Field(default=None, ge=15, le=480)
    project: int | None = Field(default=None, ge=15, le=480)


class ShiftTimeConfig(BaseModel):
    startTime: str | None = None
    endTime: str | None = None
    breakStart: str | None = None
    breakEnd: str | None = None

    @field_validator("startTime", "endTime", "breakStart", "breakEnd")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value


class CustomTimeSlots(BaseModel):
    day: ShiftTimeConfig | None = None
    evening: ShiftTimeConfig | None = None


class PreferredRooms(BaseModel):
    theory: str | None = Field(default=None, max_length=36)
    lab: str | None = Field(default=None, max_length=36)


DEFAULT_SHIFT_TIME_SLOTS: dict[str, ShiftTimeConfig] = {
    "day": ShiftTimeConfig(startTime="08:30", endTime="15:00", breakStart="12:00", breakEnd="13:00"),
    "evening": ShiftTimeConfig(startTime="15:30", endTime="21:00"),
}


def _merge_shift(shift: str, override: ShiftTimeConfig | None) -> ShiftTimeConfig:
    base = DEFAULT_SHIFT_TIME_SLOTS[shift]
    if override is None:
        return base
    provided = override.model_dump(exclude_none=True)
    # A break is configured as a pair; overriding one end alone would mix configurations.
    if "breakStart" in provided or "breakEnd" in provided:
        merged = base.model_dump(exclude={"breakStart", "breakEnd"})
    else:
        merged = base.model_dump()
    merged.update(provided)
    return ShiftTimeConfig(**merged)


class GenerationOptions(BaseModel):
    sessionId: str = Field(min_length=1, max_length=36)
    selectionMode: SelectionMode = "all"
    departmentId: str | None = Field(default=None, min_length=1, max_length=36)
    batchIds: list[str] | None = None
    classDurationMinutes: int | None = Field(default=None, ge=15, le=480)
    classDurations: ClassDurations = Field(default_factory=ClassDurations)
    offDays: list[str] = Field(default_factory=lambda: list(DEFAULT_OFF_DAYS))
    workingDays: list[str] | None = None
    customTimeSlots: CustomTimeSlots = Field(default_factory=CustomTimeSlots)
    targetShift: Literal["day", "evening"] | None = None
    preferredRooms: PreferredRooms = Field(default_factory=PreferredRooms)
    timeLimitSeconds: float | None = Field(default=None, ge=0.1, le=120)

    @field_validator("offDays", "workingDays")
    @classmethod
    def validate_days(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        cleaned = _unique(value)
        invalid = [day for day in cleaned if day not in DAY_VALUES]
        if invalid:
            raise ValueError(f"Invalid day value(s): {', '.join(invalid)}")
        return cleaned

    @field_validator("batchIds")
    @classmethod
    def normalize_batch_ids(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return _unique(value)

    @model_validator(mode="after")
    def validate_scope(self) -> "GenerationOptions":
        if self.selectionMode == "department":
            if not self.departmentId:
                raise ValueError("departmentId is required when selectionMode is 'department'")
        elif self.departmentId:
            raise ValueError("departmentId can only be provided when selectionMode is 'department'")

        if self.selectionMode in {"multi_batch", "single_batch"}:
            if not self.batchIds:
                raise ValueError(f"batchIds is required when selectionMode is '{self.selectionMode}'")
            if self.selectionMode == "single_batch" and len(self.batchIds) != 1:
                raise ValueError("single_batch selection accepts exactly one batch id")
        elif self.batchIds:
            raise ValueError("batchIds can only be provided for 'multi_batch' or 'single_batch' selection")
        return self

    @model_validator(mode="after")
    def validate_time_windows(self) -> "GenerationOptions":
        for shift in ("day", "evening"):
            merged = self.shift_config(shift)
            if (merged.breakStart is None) != (merged.breakEnd is None):
                raise ValueError(f"{shift} shift break requires both breakStart and breakEnd")
            start = parse_time_to_minutes(merged.startTime)
            end = parse_time_to_minutes(merged.endTime)
            if start >= end:
                raise ValueError(f"{shift} shift startTime must be before endTime")
            if merged.breakStart is not None:
                break_start = parse_time_to_minutes(merged.breakStart)
                break_end = parse_time_to_minutes(merged.breakEnd)
                if not start < break_start < break_end < end:
                    raise ValueError(
                        f"{shift} shift break must satisfy startTime < breakStart < breakEnd < endTime"
                    )
        return self

    def shift_config(self, shift: str) -> ShiftTimeConfig:
        return _merge_shift(shift, getattr(self.customTimeSlots, shift))

    def resolved_durations(self) -> dict[str, int]:
        durations = dict(DEFAULT_CLASS_DURATIONS)
        if self.classDurationMinutes is not None:
            durations["theory"] = self.classDurationMinutes
        durations.update(self.classDurations.model_dump(exclude_none=True))
        return durations

    def resolved_working_days(self) -> list[str]:
        return resolve_working_days(self.offDays, self.workingDays)

    def to_scheduling_config(self) -> SchedulingConfig:
        windows = {}
        for shift in ("day", "evening"):
            merged = self.shift_config(shift)
            windows[shift] = ShiftWindow.from_times(
                shift,
                merged.startTime,
                merged.endTime,
                merged.breakStart,
                merged.breakEnd,
            )
        preferred = {key: value for key, value in self.preferredRooms.model_dump().items() if value}
        return SchedulingConfig(
            durations=self.resolved_durations(),
            working_days=tuple(self.resolved_working_days()),
            windows=windows,
            preferred_rooms=preferred,
        )


class UnassignedCourseOut(BaseModel):
    batchId: str
    batchName: str
    courseId: str
    courseCode: str
    courseName: str
    semester: int


class ValidationResultOut(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    unassignedCourses: list[UnassignedCourseOut] = Field(default_factory=list)


class ScheduledClassOut(BaseModel):
    batchId: str
    batchName: str
    courseId: str
    sessionCourseId: str | None = None
    courseCode: str
    courseName: str
    courseType: str
    instructorId: str
    instructorName: str | None = None
    classroomId: str
    roomNumber: str
    day: str
    startTime: str
    endTime: str
    classType: str
    shift: str


class UnscheduledCourseOut(BaseModel):
    batchId: str
    batchName: str
    courseId: str
    courseCode: str
    courseName: str
    courseType: str
    reason: str
    message: str


class ScheduleProposalOut(BaseModel):
    id: str
    session_id: str = Field(serialization_alias="sessionId")
    generated_by: str = Field(serialization_alias="generatedBy")
    status: ProposalStatus
    schedule_data: list[dict] = Field(default_factory=list, serialization_alias="scheduleData")
    proposal_metadata: dict = Field(default_factory=dict, serialization_alias="metadata")
    reviewed_by: str | None = Field(default=None, serialization_alias="reviewedBy")
    reviewed_at: datetime | None = Field(default=None, serialization_alias="reviewedAt")
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")

    model_config = {"from_attributes": True}


class GenerationStatsOut(BaseModel):
    scheduled: int
    unscheduled: int
    total: int
    conflicts: list[dict] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    unscheduledCourses: list[UnscheduledCourseOut] = Field(default_factory=list)


class GenerateScheduleResponse(BaseModel):
    proposal: ScheduleProposalOut
    stats: GenerationStatsOut


class ApplyProposalResponse(BaseModel):
    success: bool
    schedulesCreated: int
    message: str


class BatchIdsRequest(BaseModel):
    batchIds: list[str] = Field(min_length=1)

    @field_validator("batchIds")
    @classmethod
    def normalize_batch_ids(cls, value: list[str]) -> list[str]:
        cleaned = _unique(value)
        if not cleaned:
            raise ValueError("batchIds must contain at least one id")
        return cleaned


class SessionRequest(BaseModel):
    sessionId: str = Field(min_length=1, max_length=36)


class CheckConflictsRequest(BaseModel):
    batchIds: list[str] = Field(default_factory=list)
    sessionId: str | None = Field(default=None, min_length=1, max_length=36)


class CloseSchedulesResponse(BaseModel):
    success: bool
    closedCount: int
    message: str


class ReopenSchedulesResponse(BaseModel):
    success: bool
    reopenedCount: int
    message: str


class ScheduleStatusSummary(BaseModel):
    active: int = 0
    closed: int = 0
    archived: int = 0


class CourseScheduleOut(BaseModel):
    id: str
    session_id: str = Field(serialization_alias="sessionId")
    batch_id: str = Field(serialization_alias="batchId")
    session_course_id: str | None = Field(default=None, serialization_alias="sessionCourseId")
    course_id: str = Field(serialization_alias="courseId")
    teacher_id: str | None = Field(default=None, serialization_alias="teacherId")
    classroom_id: str | None = Field(default=None, serialization_alias="classroomId")
    days_of_week: list[str] = Field(default_factory=list, serialization_alias="daysOfWeek")
    start_time: str = Field(serialization_alias="startTime")
    end_time: str = Field(serialization_alias="endTime")
    class_type: ClassType = Field(serialization_alias="classType")
    status: ScheduleStatus
    is_active: bool = Field(serialization_alias="isActive")
    proposal_id: str | None = Field(default=None, serialization_alias="proposalId")

    model_config = {"from_attributes": True}


class ScheduleConflictOut(BaseModel):
    type: str
    day: str
    schedule1: CourseScheduleOut
    schedule2: CourseScheduleOut


class ConflictCheckResult(BaseModel):
    hasConflicts: bool
    count: int
    conflicts: list[ScheduleConflictOut] = Field(default_factory=list)
