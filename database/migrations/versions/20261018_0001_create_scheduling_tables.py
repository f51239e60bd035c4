"""create scheduling tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    batch_shift = sa.Enum("day", "evening", name="batch_shift")
    course_type = sa.Enum("theory", "lab", "project", name="course_type")
    room_type = sa.Enum(
        "Lecture Hall",
        "Laboratory",
        "Seminar Room",
        "Computer Lab",
        "Conference Room",
        "Virtual",
        "Other",
        name="room_type",
    )
    proposal_status = sa.Enum("pending", "approved", "rejected", name="proposal_status")
    schedule_status = sa.Enum("active", "closed", "archived", name="schedule_status")
    class_type = sa.Enum("Lecture", "Tutorial", "Lab", "Seminar", "Workshop", "Other", name="class_type")

    op.create_table(
        "academic_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "departments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("short_name", sa.String(length=20), nullable=False),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_departments_short_name", "departments", ["short_name"], unique=True)

    op.create_table(
        "batches",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.String(length=36), sa.ForeignKey("academic_sessions.id"), nullable=False),
        sa.Column("department_id", sa.String(length=36), sa.ForeignKey("departments.id"), nullable=False),
        sa.Column("program_id", sa.String(length=36), nullable=True),
        sa.Column("shift", batch_shift, nullable=False, server_default="day"),
        sa.Column("current_semester", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("max_students", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_students", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_batches_session_id", "batches", ["session_id"])
    op.create_index("ix_batches_department_id", "batches", ["department_id"])

    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("course_type", course_type, nullable=False),
        sa.Column("credit", sa.Float(), nullable=False, server_default="3"),
        sa.Column("department_id", sa.String(length=36), sa.ForeignKey("departments.id"), nullable=True),
        sa.Column("is_elective", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_courses_code", "courses", ["code"], unique=True)

    op.create_table(
        "session_courses",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("session_id", sa.String(length=36), sa.ForeignKey("academic_sessions.id"), nullable=False),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("department_id", sa.String(length=36), sa.ForeignKey("departments.id"), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "session_id",
            "course_id",
            "department_id",
            "semester",
            name="uq_session_courses_identity",
        ),
    )
    op.create_index("ix_session_courses_session_id", "session_courses", ["session_id"])
    op.create_index("ix_session_courses_department_id", "session_courses", ["department_id"])

    op.create_table(
        "instructor_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("session_id", sa.String(length=36), sa.ForeignKey("academic_sessions.id"), nullable=False),
        sa.Column("batch_id", sa.String(length=36), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column(
            "session_course_id",
            sa.String(length=36),
            sa.ForeignKey("session_courses.id"),
            nullable=False,
        ),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_name", sa.String(length=200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "batch_id",
            "session_course_id",
            "teacher_id",
            name="uq_instructor_assignments_identity",
        ),
    )
    op.create_index("ix_instructor_assignments_session_id", "instructor_assignments", ["session_id"])
    op.create_index("ix_instructor_assignments_batch_id", "instructor_assignments", ["batch_id"])
    op.create_index("ix_instructor_assignments_teacher_id", "instructor_assignments", ["teacher_id"])

    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("building_name", sa.String(length=200), nullable=False),
        sa.Column("floor", sa.Integer(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("room_type", room_type, nullable=False, server_default="Lecture Hall"),
        sa.Column("department_id", sa.String(length=36), sa.ForeignKey("departments.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_under_maintenance", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("maintenance_notes", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_classrooms_room_number", "classrooms", ["room_number"])

    op.create_table(
        "schedule_proposals",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("session_id", sa.String(length=36), sa.ForeignKey("academic_sessions.id"), nullable=False),
        sa.Column("generated_by", sa.String(length=36), nullable=False),
        sa.Column("status", proposal_status, nullable=False, server_default="pending"),
        sa.Column("schedule_data", sa.JSON(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("reviewed_by", sa.String(length=36), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_schedule_proposals_session_id", "schedule_proposals", ["session_id"])
    op.create_index("ix_schedule_proposals_status", "schedule_proposals", ["status"])

    op.create_table(
        "course_schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("session_id", sa.String(length=36), sa.ForeignKey("academic_sessions.id"), nullable=False),
        sa.Column("batch_id", sa.String(length=36), sa.ForeignKey("batches.id"), nullable=False),
        sa.Column(
            "session_course_id",
            sa.String(length=36),
            sa.ForeignKey("session_courses.id"),
            nullable=True,
        ),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=True),
        sa.Column("classroom_id", sa.String(length=36), sa.ForeignKey("classrooms.id"), nullable=True),
        sa.Column("days_of_week", sa.JSON(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("class_type", class_type, nullable=False, server_default="Lecture"),
        sa.Column("status", schedule_status, nullable=False, server_default="active"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("proposal_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_course_schedules_session_id", "course_schedules", ["session_id"])
    op.create_index("ix_course_schedules_batch_id", "course_schedules", ["batch_id"])
    op.create_index("ix_course_schedules_teacher_id", "course_schedules", ["teacher_id"])
    op.create_index("ix_course_schedules_classroom_id", "course_schedules", ["classroom_id"])
    op.create_index("ix_course_schedules_status", "course_schedules", ["status"])
    op.create_index("ix_course_schedules_proposal_id", "course_schedules", ["proposal_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("actor_role", sa.String(length=50), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_actor_id", "activity_logs", ["actor_id"])
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("course_schedules")
    op.drop_table("schedule_proposals")
    op.drop_table("classrooms")
    op.drop_table("instructor_assignments")
    op.drop_table("session_courses")
    op.drop_table("courses")
    op.drop_table("batches")
    op.drop_table("departments")
    op.drop_table("academic_sessions")

    for enum_name in (
        "class_type",
        "schedule_status",
        "proposal_status",
        "room_type",
        "course_type",
        "batch_shift",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
