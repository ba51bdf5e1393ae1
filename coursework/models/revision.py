from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from coursework.db.base_class import Base
from coursework.grading.lifecycle import RevisionStatus


class Revision(Base):
    __tablename__ = "revisions"

    id = Column(Integer, primary_key=True, index=True)

    artifact_id = Column(Integer, ForeignKey("artifacts.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # set by the service so penalty math sees the exact submission instant
    created_at = Column(DateTime(timezone=True), nullable=False)

    file_key = Column(String(512), nullable=False)
    original_file_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=True)
    size_bytes = Column(Integer, nullable=True)
    comment = Column(Text, nullable=True)

    status = Column(
        Enum(RevisionStatus, native_enum=False),
        nullable=False,
        default=RevisionStatus.SUBMITTED,
    )

    artifact = relationship("Artifact", back_populates="revisions")
    grades = relationship(
        "Grade",
        back_populates="revision",
        cascade="all, delete-orphan",
        order_by="Grade.id",
    )
