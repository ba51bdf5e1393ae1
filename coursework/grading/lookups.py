from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from coursework.core.errors import NotFound
from coursework.models.course import CourseStudent
from coursework.models.exemption import StageExemption
from coursework.models.task import Artifact, Stage, Task
from coursework.models.user import User


class GradingLookup(Protocol):
    """Read access the grading pipeline needs from the course structure."""

    def find_task(self, task_id: int) -> Task: ...

    def find_stage(self, stage_id: int) -> Stage: ...

    def find_stages_by_task(self, task_id: int) -> list[Stage]: ...

    def find_artifact(self, artifact_id: int) -> Artifact: ...

    def find_artifacts_by_stage(self, stage_id: int) -> list[Artifact]: ...

    def find_exemption(self, stage_id: int, student_id: int) -> StageExemption | None: ...

    def find_user_display_name(self, student_id: int) -> str | None: ...

    def find_enrollment_album_number(self, course_id: int, student_id: int) -> str | None: ...


class SqlGradingLookup:
    def __init__(self, db: Session):
        self.db = db

    def find_task(self, task_id: int) -> Task:
        task = self.db.get(Task, task_id)
        if task is None:
            raise NotFound("Task", task_id)
        return task

    def find_stage(self, stage_id: int) -> Stage:
        stage = self.db.get(Stage, stage_id)
        if stage is None:
            raise NotFound("Stage", stage_id)
        return stage

    def find_stages_by_task(self, task_id: int) -> list[Stage]:
        return list(
            self.db.scalars(select(Stage).where(Stage.task_id == task_id).order_by(Stage.id))
        )

    def find_artifact(self, artifact_id: int) -> Artifact:
        artifact = self.db.get(Artifact, artifact_id)
        if artifact is None:
            raise NotFound("Artifact", artifact_id)
        return artifact

    def find_artifacts_by_stage(self, stage_id: int) -> list[Artifact]:
        return list(
            self.db.scalars(
                select(Artifact).where(Artifact.stage_id == stage_id).order_by(Artifact.id)
            )
        )

    def find_exemption(self, stage_id: int, student_id: int) -> StageExemption | None:
        return self.db.scalars(
            select(StageExemption).where(
                StageExemption.stage_id == stage_id,
                StageExemption.student_id == student_id,
            )
        ).first()

    def find_user_display_name(self, student_id: int) -> str | None:
        user = self.db.get(User, student_id)
        if user is None:
            return None
        return user.display_name or None

    def find_enrollment_album_number(self, course_id: int, student_id: int) -> str | None:
        enrollment = self.db.scalars(
            select(CourseStudent).where(
                CourseStudent.course_id == course_id,
                CourseStudent.student_id == student_id,
            )
        ).first()
        if enrollment is not None and enrollment.album_number:
            return enrollment.album_number

        user = self.db.get(User, student_id)
        return user.album_number if user is not None else None
