from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursework.db.base_class import Base


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    teacher_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), index=True)

    students = relationship(
        "CourseStudent", back_populates="course", cascade="all, delete-orphan"
    )
    tasks = relationship("Task", back_populates="course", cascade="all, delete-orphan")


class CourseStudent(Base):
    __tablename__ = "course_students"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    album_number: Mapped[str | None] = mapped_column(String(50))

    __table_args__ = (
        UniqueConstraint("course_id", "student_id", name="uq_course_students_course_student"),
    )

    course = relationship("Course", back_populates="students")
