import logging
import math
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from coursework.core.config import PERCENT_MAX_POINTS
from coursework.core.errors import NotFound, ValidationError
from coursework.grading.audit import AuditEventType, AuditSink
from coursework.grading.lifecycle import RevisionStatus, transition
from coursework.grading.lookups import SqlGradingLookup
from coursework.grading.penalty import apply_penalty
from coursework.grading.queue import QueueSynchronizer
from coursework.models.grade import Grade
from coursework.models.revision import Revision
from coursework.models.task import GradingMode, Stage, Task
from coursework.services.transaction import transaction

logger = logging.getLogger(__name__)


def max_points_for(task: Task) -> float:
    if task.grading_mode == GradingMode.POINTS10:
        return task.max_points
    return PERCENT_MAX_POINTS


def _check_points(points: float, task: Task) -> None:
    upper = max_points_for(task)
    if math.isnan(points) or points < 0 or points > upper:
        raise ValidationError(f"points must be between 0 and {upper:g}")


def _penalty_percent(
    sync: QueueSynchronizer, revision: Revision, stage: Stage, skip_penalty: bool
) -> float:
    if skip_penalty:
        return 0.0

    # prefer the read-model's penalty, it already reflects the student's exemption
    entry = sync.get_entry(revision.artifact_id, revision.student_id)
    if (
        entry is not None
        and entry.last_revision_id == revision.id
        and entry.penalty_percent_applied is not None
    ):
        return entry.penalty_percent_applied

    policy = sync.resolve_policy(stage, revision.student_id)
    return policy.penalty_for(revision.created_at)


def grade_revision(
    db: Session,
    revision_id: int,
    teacher_id: int,
    points: float,
    comment: str | None,
    new_status: RevisionStatus,
    skip_penalty: bool = False,
    audit: AuditSink | None = None,
) -> Grade:
    """
    Record a grade for a revision and move it to `new_status`.

    Raises NotFound for an unknown revision, InvalidTransition for an illegal
    status change and ValidationError for points outside the task's scale.
    """
    with transaction(db):
        revision = db.get(Revision, revision_id)
        if revision is None:
            raise NotFound("Revision", revision_id)

        lookup = SqlGradingLookup(db)
        artifact = lookup.find_artifact(revision.artifact_id)
        stage = lookup.find_stage(artifact.stage_id)
        task = lookup.find_task(stage.task_id)
        _check_points(points, task)

        revision.status = transition(revision.status, new_status)

        sync = QueueSynchronizer(db, lookup)
        percent = _penalty_percent(sync, revision, stage, skip_penalty)

        grade = Grade(
            revision_id=revision.id,
            teacher_id=teacher_id,
            created_at=datetime.now(timezone.utc),
            points_brutto=points,
            points_netto=apply_penalty(points, percent),
            penalty_skipped=skip_penalty,
            comment=comment,
            status_after_grade=new_status,
        )
        db.add(grade)
        db.flush()

        sync.on_grade_assigned(revision, points, new_status, skip_penalty)

    db.refresh(grade)
    logger.info(
        "revision %s graded by teacher %s: %s brutto=%s netto=%s",
        revision_id,
        teacher_id,
        new_status.value,
        grade.points_brutto,
        grade.points_netto,
    )

    if audit is not None:
        audit.record(
            AuditEventType.REVISION_GRADED,
            teacher_id,
            {"revisionId": revision_id, "gradeId": grade.id},
        )
    return grade
