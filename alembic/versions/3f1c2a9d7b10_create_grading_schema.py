"""create grading schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 10:12:41.208311

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

REVISION_STATUS = sa.Enum(
    "SUBMITTED", "NEEDS_FIX", "ACCEPTED", "REJECTED",
    name="revisionstatus", native_enum=False,
)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=True),
        sa.Column("last_name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("album_number", sa.String(50), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("teacher_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True, index=True),
    )

    op.create_table(
        "course_students",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("album_number", sa.String(50), nullable=True),
        sa.UniqueConstraint("course_id", "student_id", name="uq_course_students_course_student"),
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("grading_mode", sa.Enum("PERCENT", "POINTS10", name="gradingmode", native_enum=False), nullable=False),
        sa.Column("max_points", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "stages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("weight_percent", sa.Integer(), nullable=False),
        sa.Column("soft_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hard_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("penalty_k_percent_per_24h", sa.Float(), nullable=True),
        sa.Column("penalty_max_m_percent", sa.Float(), nullable=True),
    )

    op.create_table(
        "artifacts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("stage_id", sa.Integer(), sa.ForeignKey("stages.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("max_size_bytes", sa.Integer(), nullable=True),
        sa.Column("allowed_extensions_csv", sa.String(255), nullable=True),
    )

    op.create_table(
        "stage_exemptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("stage_id", sa.Integer(), sa.ForeignKey("stages.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("allow_after_hard", sa.Boolean(), nullable=False),
        sa.Column("custom_soft", sa.DateTime(timezone=True), nullable=True),
        sa.Column("custom_hard", sa.DateTime(timezone=True), nullable=True),
        sa.Column("teacher_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("stage_id", "student_id", name="uq_stage_exemptions_stage_student"),
    )

    op.create_table(
        "revisions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("artifact_id", sa.Integer(), sa.ForeignKey("artifacts.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("file_key", sa.String(512), nullable=False),
        sa.Column("original_file_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=True),
        sa.Column("size_bytes", sa.Integer(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("status", REVISION_STATUS, nullable=False),
    )

    op.create_table(
        "grades",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("revision_id", sa.Integer(), sa.ForeignKey("revisions.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("teacher_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("points_brutto", sa.Float(), nullable=True),
        sa.Column("points_netto", sa.Float(), nullable=True),
        sa.Column("penalty_skipped", sa.Boolean(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("status_after_grade", REVISION_STATUS, nullable=False),
    )

    op.create_table(
        "grading_queue",
        sa.Column("artifact_id", sa.Integer(), sa.ForeignKey("artifacts.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("stage_id", sa.Integer(), nullable=False, index=True),
        sa.Column("task_id", sa.Integer(), nullable=False, index=True),
        sa.Column("course_id", sa.Integer(), nullable=False, index=True),
        sa.Column("album_number", sa.String(50), nullable=True),
        sa.Column("student_name", sa.String(255), nullable=True),
        sa.Column("last_revision_id", sa.Integer(), nullable=True, index=True),
        sa.Column("last_revision_status", REVISION_STATUS, nullable=True),
        sa.Column("last_submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("soft_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hard_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("late_days_started", sa.Integer(), nullable=True),
        sa.Column("penalty_percent_applied", sa.Float(), nullable=True),
        sa.Column("penalty_skipped", sa.Boolean(), nullable=False),
        sa.Column("last_points_brutto", sa.Float(), nullable=True),
        sa.Column("last_points_netto", sa.Float(), nullable=True),
        sa.Column("last_accepted_revision_id", sa.Integer(), nullable=True),
        sa.Column("last_accepted_points_netto", sa.Float(), nullable=True),
        sa.Column("flag_new_submission", sa.Boolean(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_type", sa.String(64), nullable=False, index=True),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("context", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "audit_log",
        "grading_queue",
        "grades",
        "revisions",
        "stage_exemptions",
        "artifacts",
        "stages",
        "tasks",
        "course_students",
        "courses",
        "users",
    ):
        op.drop_table(table)
