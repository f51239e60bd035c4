from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from campus_scheduler.models.course_schedule import ClassType, CourseSchedule, ScheduleStatus
from campus_scheduler.scheduling.constraints import OccupancyArena, ScheduledClassEntry
from campus_scheduler.scheduling.time_grid import parse_time_to_minutes

logger = logging.getLogger(__name__)


def schedule_entries(record: CourseSchedule) -> list[ScheduledClassEntry]:
    """One checker entry per weekday the live record meets on."""
    start = parse_time_to_minutes(record.start_time)
    end = parse_time_to_minutes(record.end_time)
    return [
        ScheduledClassEntry(
            batch_id=record.batch_id,
            course_id=record.course_id,
            instructor_id=record.teacher_id or f"unassigned:{record.id}",
            classroom_id=record.classroom_id or f"unassigned:{record.id}",
            day=day,
            start=start,
            end=end,
            class_type=record.class_type.value,
            session_course_id=record.session_course_id,
        )
        for day in record.days_of_week
    ]


def entry_from_payload(item: dict) -> ScheduledClassEntry:
    return ScheduledClassEntry(
        batch_id=item["batchId"],
        course_id=item["courseId"],
        instructor_id=item["instructorId"],
        classroom_id=item["classroomId"],
        day=item["day"],
        start=parse_time_to_minutes(item["startTime"]),
        end=parse_time_to_minutes(item["endTime"]),
        class_type=item.get("classType", ClassType.lecture.value),
        session_course_id=item.get("sessionCourseId"),
        course_type=item.get("courseType", "theory"),
        shift=item.get("shift", "day"),
    )


class LiveScheduleStore:
    """System-of-record weekly schedules. Callers own the transaction."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def active_schedules(
        self,
        *,
        batch_ids: Iterable[str] | None = None,
        session_id: str | None = None,
        exclude_batch_ids: Iterable[str] | None = None,
    ) -> list[CourseSchedule]:
        query = select(CourseSchedule).where(
            CourseSchedule.status == ScheduleStatus.active,
            CourseSchedule.is_active.is_(True),
        )
        if batch_ids is not None:
            query = query.where(CourseSchedule.batch_id.in_(list(batch_ids)))
        if session_id is not None:
            query = query.where(CourseSchedule.session_id == session_id)
        if exclude_batch_ids:
            query = query.where(CourseSchedule.batch_id.not_in(list(exclude_batch_ids)))
        query = query.order_by(CourseSchedule.batch_id, CourseSchedule.start_time, CourseSchedule.id)
        return list(self.db.execute(query).scalars())

    def reserved_arena(self, *, exclude_batch_ids: Iterable[str]) -> OccupancyArena:
        arena = OccupancyArena()
        for record in self.active_schedules(exclude_batch_ids=list(exclude_batch_ids)):
            for entry in schedule_entries(record):
                arena.commit(entry)
        return arena

    def replace_for_batches(
        self,
        *,
        session_id: str,
        batch_ids: Iterable[str],
        schedule_data: list[dict],
        proposal_id: str,
    ) -> int:
        batch_ids = list(batch_ids)
        archived = self.db.execute(
            update(CourseSchedule)
            .where(
                CourseSchedule.session_id == session_id,
                CourseSchedule.batch_id.in_(batch_ids),
                CourseSchedule.status.in_([ScheduleStatus.active, ScheduleStatus.closed]),
            )
            .values(status=ScheduleStatus.archived, is_active=False)
            .execution_options(synchronize_session=False)
        ).rowcount

        for item in schedule_data:
            self.db.add(
                CourseSchedule(
                    session_id=session_id,
                    batch_id=item["batchId"],
                    session_course_id=item.get("sessionCourseId"),
                    course_id=item["courseId"],
                    teacher_id=item["instructorId"],
                    classroom_id=item["classroomId"],
                    days_of_week=[item["day"]],
                    start_time=item["startTime"],
                    end_time=item["endTime"],
                    class_type=ClassType(item.get("classType", ClassType.lecture.value)),
                    status=ScheduleStatus.active,
                    is_active=True,
                    proposal_id=proposal_id,
                )
            )
        self.db.flush()
        logger.info(
            "LIVE SCHEDULE REPLACED | session_id=%s | batches=%s | archived=%s | created=%s | proposal_id=%s",
            session_id,
            len(batch_ids),
            archived,
            len(schedule_data),
            proposal_id,
        )
        return len(schedule_data)

    def _set_status(self, query_filter, *, source: ScheduleStatus, target: ScheduleStatus) -> int:
        result = self.db.execute(
            update(CourseSchedule)
            .where(query_filter, CourseSchedule.status == source)
            .values(status=target, is_active=target == ScheduleStatus.active)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def close_for_batches(self, batch_ids: Iterable[str]) -> int:
        return self._set_status(
            CourseSchedule.batch_id.in_(list(batch_ids)),
            source=ScheduleStatus.active,
            target=ScheduleStatus.closed,
        )

    def close_for_session(self, session_id: str) -> int:
        return self._set_status(
            CourseSchedule.session_id == session_id,
            source=ScheduleStatus.active,
            target=ScheduleStatus.closed,
        )

    def reopen_for_batches(self, batch_ids: Iterable[str]) -> int:
        return self._set_status(
            CourseSchedule.batch_id.in_(list(batch_ids)),
            source=ScheduleStatus.closed,
            target=ScheduleStatus.active,
        )

    def status_summary(self, batch_ids: Iterable[str] | None = None) -> dict[str, int]:
        query = select(CourseSchedule.status, func.count(CourseSchedule.id)).group_by(CourseSchedule.status)
        if batch_ids is not None:
            query = query.where(CourseSchedule.batch_id.in_(list(batch_ids)))
        summary = {status.value: 0 for status in ScheduleStatus}
        for status, count in self.db.execute(query).all():
            summary[ScheduleStatus(status).value] = count
        return summary
