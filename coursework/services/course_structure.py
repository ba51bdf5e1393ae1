import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from coursework.core.config import DEFAULT_MAX_POINTS
from coursework.core.errors import NotFound
from coursework.grading.audit import AuditEventType, AuditSink
from coursework.grading.lookups import SqlGradingLookup
from coursework.grading.penalty import as_utc
from coursework.grading.queue import QueueSynchronizer
from coursework.grading.validation import (
    WeightStatus,
    validate_deadlines,
    validate_penalty_params,
    validate_weights,
    weight_status,
)
from coursework.models.course import Course
from coursework.models.grading_queue import GradingQueueEntry
from coursework.models.task import Artifact, Stage, Task
from coursework.schemas.task import ArtifactCreate, StageCreate, StageUpdate, TaskCreate
from coursework.services.transaction import transaction

logger = logging.getLogger(__name__)


def _same_instant(a: datetime | None, b: datetime | None) -> bool:
    if a is None or b is None:
        return a is b
    return as_utc(a) == as_utc(b)


def _validate_stage(payload: StageCreate, now: datetime, allow_past_soft: bool = False) -> None:
    validate_deadlines(payload.soft_deadline, payload.hard_deadline, now, allow_past_soft)
    validate_penalty_params(payload.penalty_k_percent_per_24h, payload.penalty_max_m_percent)


def create_task(
    db: Session,
    course_id: int,
    payload: TaskCreate,
    teacher_id: int,
    now: datetime | None = None,
    audit: AuditSink | None = None,
) -> Task:
    """Create a task with all of its stages; the stage weights must sum to 100%."""
    now = now or datetime.now(timezone.utc)

    for stage in payload.stages:
        _validate_stage(stage, now)
    validate_weights(stage.weight_percent for stage in payload.stages)

    with transaction(db):
        if db.get(Course, course_id) is None:
            raise NotFound("Course", course_id)

        task = Task(
            course_id=course_id,
            title=payload.title,
            description=payload.description,
            grading_mode=payload.grading_mode,
            max_points=payload.max_points or DEFAULT_MAX_POINTS,
        )
        task.stages = [Stage(**stage.model_dump()) for stage in payload.stages]
        db.add(task)

    db.refresh(task)
    logger.info("task %s created in course %s with %d stage(s)", task.id, course_id, len(task.stages))

    if audit is not None:
        audit.record(AuditEventType.TASK_CREATED, teacher_id, {"taskId": task.id, "courseId": course_id})
    return task


def update_stage(
    db: Session,
    stage_id: int,
    payload: StageUpdate,
    teacher_id: int,
    now: datetime | None = None,
    audit: AuditSink | None = None,
) -> Stage:
    """
    Edit a stage. The task's weight sum is re-checked with the new weight, and
    when deadlines or penalty policy change every queue row under the stage
    is recomputed.
    """
    now = now or datetime.now(timezone.utc)

    with transaction(db):
        lookup = SqlGradingLookup(db)
        stage = lookup.find_stage(stage_id)

        soft_changed = not _same_instant(stage.soft_deadline, payload.soft_deadline)
        _validate_stage(payload, now, allow_past_soft=not soft_changed)

        others = [s.weight_percent for s in lookup.find_stages_by_task(stage.task_id) if s.id != stage.id]
        validate_weights(others + [payload.weight_percent])

        policy_changed = (
            soft_changed
            or not _same_instant(stage.hard_deadline, payload.hard_deadline)
            or stage.penalty_k_percent_per_24h != payload.penalty_k_percent_per_24h
            or stage.penalty_max_m_percent != payload.penalty_max_m_percent
        )

        for field, value in payload.model_dump().items():
            setattr(stage, field, value)
        db.flush()

        if policy_changed:
            sync = QueueSynchronizer(db, lookup)
            student_ids = db.scalars(
                select(GradingQueueEntry.student_id)
                .where(GradingQueueEntry.stage_id == stage.id)
                .distinct()
            )
            for student_id in list(student_ids):
                sync.recompute(stage.id, student_id)

    db.refresh(stage)
    logger.info("stage %s updated (policy changed: %s)", stage_id, policy_changed)

    if audit is not None:
        audit.record(AuditEventType.STAGE_UPDATED, teacher_id, {"stageId": stage_id})
    return stage


def create_artifact(
    db: Session,
    stage_id: int,
    payload: ArtifactCreate,
    teacher_id: int,
    audit: AuditSink | None = None,
) -> Artifact:
    with transaction(db):
        stage = SqlGradingLookup(db).find_stage(stage_id)
        artifact = Artifact(stage_id=stage.id, **payload.model_dump())
        db.add(artifact)

    db.refresh(artifact)

    if audit is not None:
        audit.record(AuditEventType.ARTIFACT_CREATED, teacher_id, {"artifactId": artifact.id, "stageId": stage_id})
    return artifact


def task_weight_status(db: Session, task_id: int) -> WeightStatus:
    lookup = SqlGradingLookup(db)
    task = lookup.find_task(task_id)
    return weight_status(s.weight_percent for s in lookup.find_stages_by_task(task.id))
