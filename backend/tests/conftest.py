import os
import tempfile
from pathlib import Path

# Settings are cached on first import; point them at a throwaway database before the app loads.
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+pysqlite:///{Path(tempfile.gettempdir()) / 'campus_scheduler_tests.db'}",
)
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient #fake http client over the ASGI app, no server needed
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campus_scheduler.api.deps import get_db
from campus_scheduler.core.security import create_access_token
from campus_scheduler.db.base import Base
from campus_scheduler.main import app
from campus_scheduler.models.academic import (
    AcademicSession,
    Batch,
    Course,
    CourseType,
    Department,
    InstructorAssignment,
    SessionCourse,
    Shift,
)
from campus_scheduler.models.classroom import Classroom, RoomType
from campus_scheduler.services.scope_lock import clear_scope_locks


@pytest.fixture()
def session_factory():
    engine = create_engine( #isolated in-memory DB shared by every session of the test
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    clear_scope_locks()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    clear_scope_locks()


def auth_headers(role: str = "admin", user_id: str = "user-admin") -> dict[str, str]:
    token = create_access_token(user_id, role=role, name=f"{role} user")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return auth_headers("admin")


@pytest.fixture()
def directory(db_session):
    """Two day-shift batches of one department, each taking one theory and one lab course."""
    session = AcademicSession(id="session-1", name="Spring 2026", year=2026)
    department = Department(id="dept-cse", name="Computer Science", short_name="CSE")
    db_session.add_all([session, department])
    db_session.flush()

    batches = [
        Batch(
            id="batch-a",
            name="CSE-A",
            year=2026,
            session_id=session.id,
            department_id=department.id,
            shift=Shift.day,
            current_semester=1,
            max_students=45,
            current_students=40,
        ),
        Batch(
            id="batch-b",
            name="CSE-B",
            year=2026,
            session_id=session.id,
            department_id=department.id,
            shift=Shift.day,
            current_semester=1,
            max_students=45,
            current_students=40,
        ),
    ]
    courses = [
        Course(id="course-101", code="CSE101", name="Programming Fundamentals", course_type=CourseType.theory),
        Course(id="course-102", code="CSE102L", name="Programming Lab", course_type=CourseType.lab),
    ]
    db_session.add_all(batches + courses)
    db_session.flush()

    offerings = [
        SessionCourse(id="sc-101", session_id=session.id, course_id="course-101", department_id=department.id, semester=1),
        SessionCourse(id="sc-102", session_id=session.id, course_id="course-102", department_id=department.id, semester=1),
    ]
    db_session.add_all(offerings)
    db_session.flush()

    assignments = [
        ("batch-a", "sc-101", "teacher-1"),
        ("batch-a", "sc-102", "teacher-2"),
        ("batch-b", "sc-101", "teacher-3"),
        ("batch-b", "sc-102", "teacher-4"),
    ]
    db_session.add_all(
        InstructorAssignment(
            session_id=session.id,
            batch_id=batch_id,
            session_course_id=session_course_id,
            teacher_id=teacher_id,
            teacher_name=teacher_id.replace("-", " ").title(),
        )
        for batch_id, session_course_id, teacher_id in assignments
    )
    db_session.add_all(
        [
            Classroom(id="room-101", room_number="R101", building_name="Main", capacity=60, room_type=RoomType.lecture_hall),
            Classroom(id="lab-201", room_number="L201", building_name="Main", capacity=60, room_type=RoomType.laboratory),
            Classroom(
                id="room-999",
                room_number="R999",
                building_name="Annex",
                capacity=80,
                room_type=RoomType.lecture_hall,
                is_under_maintenance=True,
            ),
        ]
    )
    db_session.commit()
    return {"session_id": session.id, "department_id": department.id, "batch_ids": ["batch-a", "batch-b"]}
