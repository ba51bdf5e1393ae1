from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursework.db.base_class import Base


class StageExemption(Base):
    __tablename__ = "stage_exemptions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    stage_id: Mapped[int] = mapped_column(
        ForeignKey("stages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    allow_after_hard: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    custom_soft: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    custom_hard: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    teacher_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("stage_id", "student_id", name="uq_stage_exemptions_stage_student"),
    )

    stage = relationship("Stage", back_populates="exemptions")
