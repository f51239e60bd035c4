from __future__ import annotations

import logging
from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.orm import Session

from campus_scheduler.core.exceptions import PreconditionError
from campus_scheduler.models.academic import (
    AcademicSession,
    Batch,
    Course,
    Department,
    InstructorAssignment,
    SessionCourse,
)
from campus_scheduler.models.classroom import LAB_ROOM_TYPES, Classroom
from campus_scheduler.schemas.schedule import GenerationOptions
from campus_scheduler.scheduling.snapshot import (
    BatchInfo,
    ClassroomInfo,
    CourseOffering,
    DirectorySnapshot,
    InstructorInfo,
)

logger = logging.getLogger(__name__)


def _batch_size(batch: Batch) -> int | None:
    if batch.current_students and batch.current_students > 0:
        return batch.current_students
    if batch.max_students and batch.max_students > 0:
        return batch.max_students
    return None


class AcademicDirectory:
    """Reads the academic directory and turns it into a ``DirectorySnapshot``."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def resolve_scope(self, options: GenerationOptions) -> list[Batch]:
        session = self.db.get(AcademicSession, options.sessionId)
        if session is None:
            raise PreconditionError(
                f"Academic session {options.sessionId} does not exist",
                details={"sessionId": options.sessionId},
            )

        query = select(Batch).where(Batch.session_id == options.sessionId)
        if options.selectionMode == "department":
            if self.db.get(Department, options.departmentId) is None:
                raise PreconditionError(
                    f"Department {options.departmentId} does not exist",
                    details={"departmentId": options.departmentId},
                )
            query = query.where(Batch.department_id == options.departmentId)
        elif options.selectionMode in {"multi_batch", "single_batch"}:
            query = query.where(Batch.id.in_(options.batchIds))

        batches = list(self.db.execute(query).scalars())
        if options.selectionMode in {"multi_batch", "single_batch"}:
            found = {batch.id for batch in batches}
            missing = [batch_id for batch_id in options.batchIds if batch_id not in found]
            if missing:
                raise PreconditionError(
                    "Some selected batches do not belong to this session",
                    details={"missingBatchIds": missing},
                )
            inactive = [batch.id for batch in batches if not batch.status]
            if inactive:
                raise PreconditionError(
                    "Some selected batches are inactive",
                    details={"inactiveBatchIds": sorted(inactive)},
                )

        batches = [batch for batch in batches if batch.status]
        if options.targetShift is not None:
            batches = [batch for batch in batches if batch.shift.value == options.targetShift]
        return sorted(batches, key=lambda item: (item.name, item.id))

    def _offerings(self, session_id: str, batches: list[Batch]) -> list[CourseOffering]:
        department_ids = {batch.department_id for batch in batches}
        if not department_ids:
            return []
        rows = self.db.execute(
            select(SessionCourse, Course)
            .join(Course, Course.id == SessionCourse.course_id)
            .where(
                SessionCourse.session_id == session_id,
                SessionCourse.department_id.in_(department_ids),
                Course.status.is_(True),
            )
        ).all()

        by_department_semester: dict[tuple[str, int], list[tuple[SessionCourse, Course]]] = defaultdict(list)
        for session_course, course in rows:
            by_department_semester[(session_course.department_id, session_course.semester)].append(
                (session_course, course)
            )

        offerings: list[CourseOffering] = []
        for batch in batches:
            for session_course, course in by_department_semester.get((batch.department_id, batch.current_semester), []):
                offerings.append(
                    CourseOffering(
                        batch_id=batch.id,
                        course_id=course.id,
                        session_course_id=session_course.id,
                        code=course.code,
                        name=course.name,
                        course_type=course.course_type.value,
                        semester=session_course.semester,
                    )
                )
        return offerings

    def _instructors(self, session_id: str, batches: list[Batch]) -> dict[tuple[str, str], tuple[InstructorInfo, ...]]:
        batch_ids = [batch.id for batch in batches]
        if not batch_ids:
            return {}
        rows = self.db.execute(
            select(InstructorAssignment, SessionCourse.course_id)
            .join(SessionCourse, SessionCourse.id == InstructorAssignment.session_course_id)
            .where(
                InstructorAssignment.session_id == session_id,
                InstructorAssignment.batch_id.in_(batch_ids),
                InstructorAssignment.is_active.is_(True),
            )
        ).all()
        grouped: dict[tuple[str, str], list[InstructorInfo]] = defaultdict(list)
        for assignment, course_id in rows:
            grouped[(assignment.batch_id, course_id)].append(
                InstructorInfo(id=assignment.teacher_id, name=assignment.teacher_name)
            )
        return {key: tuple(value) for key, value in grouped.items()}

    def classrooms(self) -> list[ClassroomInfo]:
        rows = self.db.execute(
            select(Classroom).where(
                Classroom.is_active.is_(True),
                Classroom.is_under_maintenance.is_(False),
            )
        ).scalars()
        return [
            ClassroomInfo(
                id=room.id,
                room_number=room.room_number,
                capacity=room.capacity or None,
                is_lab=room.room_type in LAB_ROOM_TYPES,
                building=room.building_name,
            )
            for room in rows
        ]

    def load_snapshot(self, options: GenerationOptions) -> DirectorySnapshot:
        batches = self.resolve_scope(options)
        snapshot = DirectorySnapshot(
            session_id=options.sessionId,
            batches=tuple(
                BatchInfo(
                    id=batch.id,
                    name=batch.name,
                    shift=batch.shift.value,
                    department_id=batch.department_id,
                    current_semester=batch.current_semester,
                    student_count=_batch_size(batch),
                )
                for batch in batches
            ),
            offerings=tuple(self._offerings(options.sessionId, batches)),
            classrooms=tuple(self.classrooms()),
            instructors=self._instructors(options.sessionId, batches),
        )
        logger.info(
            "SCHEDULE SCOPE RESOLVED | session_id=%s | mode=%s | batches=%s | offerings=%s | classrooms=%s",
            options.sessionId,
            options.selectionMode,
            len(snapshot.batches),
            len(snapshot.offerings),
            len(snapshot.classrooms),
        )
        return snapshot
