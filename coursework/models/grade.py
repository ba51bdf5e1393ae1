from sqlalchemy import Boolean, Column, DateTime, Enum, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from coursework.db.base_class import Base
from coursework.grading.lifecycle import RevisionStatus


class Grade(Base):
    """One grading event. Regrading appends a new row, old rows never change."""

    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, index=True)

    revision_id = Column(Integer, ForeignKey("revisions.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)

    points_brutto = Column(Float, nullable=True)
    points_netto = Column(Float, nullable=True)
    penalty_skipped = Column(Boolean, nullable=False, default=False)
    comment = Column(Text, nullable=True)
    status_after_grade = Column(Enum(RevisionStatus, native_enum=False), nullable=False)

    revision = relationship("Revision", back_populates="grades")
