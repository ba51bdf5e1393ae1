from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from coursework.db.base_class import Base
from coursework.grading.lifecycle import RevisionStatus


class GradingQueueEntry(Base):
    """
    Denormalized dashboard row for one (artifact, student) pair.

    A projection, never the system of record: every column can be derived
    again from revisions, grades, the stage and the student's exemption
    (see QueueSynchronizer.rebuild). Deliberately has no ORM relationships.
    """

    __tablename__ = "grading_queue"

    artifact_id: Mapped[int] = mapped_column(
        ForeignKey("artifacts.id", ondelete="CASCADE"), primary_key=True
    )
    student_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )

    stage_id: Mapped[int] = mapped_column(nullable=False, index=True)
    task_id: Mapped[int] = mapped_column(nullable=False, index=True)
    course_id: Mapped[int] = mapped_column(nullable=False, index=True)

    album_number: Mapped[str | None] = mapped_column(String(50))
    student_name: Mapped[str | None] = mapped_column(String(255))

    last_revision_id: Mapped[int | None] = mapped_column(index=True)
    last_revision_status: Mapped[RevisionStatus | None] = mapped_column(
        Enum(RevisionStatus, native_enum=False)
    )
    last_submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    soft_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    hard_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    late_days_started: Mapped[int | None] = mapped_column()
    penalty_percent_applied: Mapped[float | None] = mapped_column(Float)
    penalty_skipped: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    last_points_brutto: Mapped[float | None] = mapped_column(Float)
    last_points_netto: Mapped[float | None] = mapped_column(Float)

    last_accepted_revision_id: Mapped[int | None] = mapped_column()
    last_accepted_points_netto: Mapped[float | None] = mapped_column(Float)

    flag_new_submission: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}
