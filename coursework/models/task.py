import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Float, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursework.core.config import DEFAULT_MAX_POINTS
from coursework.db.base_class import Base


class GradingMode(str, enum.Enum):
    PERCENT = "PERCENT"
    POINTS10 = "POINTS10"


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    grading_mode: Mapped[GradingMode] = mapped_column(
        Enum(GradingMode, native_enum=False), nullable=False, default=GradingMode.PERCENT
    )
    max_points: Mapped[float] = mapped_column(Float, nullable=False, default=DEFAULT_MAX_POINTS)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    course = relationship("Course", back_populates="tasks")
    stages = relationship(
        "Stage",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Stage.id",
    )


class Stage(Base):
    __tablename__ = "stages"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    task_id: Mapped[int] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    weight_percent: Mapped[int] = mapped_column(nullable=False)

    soft_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    hard_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    penalty_k_percent_per_24h: Mapped[float | None] = mapped_column(Float)
    penalty_max_m_percent: Mapped[float | None] = mapped_column(Float)

    task = relationship("Task", back_populates="stages")
    artifacts = relationship(
        "Artifact",
        back_populates="stage",
        cascade="all, delete-orphan",
        order_by="Artifact.id",
    )
    exemptions = relationship(
        "StageExemption", back_populates="stage", cascade="all, delete-orphan"
    )


class Artifact(Base):
    __tablename__ = "artifacts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    stage_id: Mapped[int] = mapped_column(
        ForeignKey("stages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    max_size_bytes: Mapped[int | None] = mapped_column()
    allowed_extensions_csv: Mapped[str | None] = mapped_column(String(255))

    stage = relationship("Stage", back_populates="artifacts")
    revisions = relationship(
        "Revision", back_populates="artifact", cascade="all, delete-orphan"
    )
