import logging

from sqlalchemy.orm import Session

from coursework.core.errors import ValidationError
from coursework.grading.audit import AuditEventType, AuditSink
from coursework.grading.lookups import SqlGradingLookup
from coursework.grading.penalty import as_utc
from coursework.grading.queue import QueueSynchronizer
from coursework.models.exemption import StageExemption
from coursework.models.task import Stage
from coursework.schemas.exemption import ExemptionOverride
from coursework.services.transaction import transaction

logger = logging.getLogger(__name__)


def _check_effective_deadlines(stage: Stage, override: ExemptionOverride) -> None:
    # a custom value replaces the stage default only when set
    soft = override.custom_soft if override.custom_soft is not None else stage.soft_deadline
    hard = override.custom_hard if override.custom_hard is not None else stage.hard_deadline
    if soft is not None and hard is not None and as_utc(soft) > as_utc(hard):
        raise ValidationError("Effective soft deadline must be on or before the effective hard deadline")


def upsert_exemption(
    db: Session,
    stage_id: int,
    student_id: int,
    override: ExemptionOverride,
    teacher_id: int,
    audit: AuditSink | None = None,
) -> StageExemption:
    """
    Set the student's exemption for a stage (last write wins) and recompute
    the student's queue rows under it in the same transaction.
    """
    with transaction(db):
        lookup = SqlGradingLookup(db)
        stage = lookup.find_stage(stage_id)
        _check_effective_deadlines(stage, override)

        exemption = lookup.find_exemption(stage.id, student_id)
        if exemption is None:
            exemption = StageExemption(stage_id=stage.id, student_id=student_id)
            db.add(exemption)

        exemption.allow_after_hard = override.allow_after_hard
        exemption.custom_soft = override.custom_soft
        exemption.custom_hard = override.custom_hard
        exemption.teacher_id = teacher_id
        exemption.reason = override.reason
        db.flush()

        QueueSynchronizer(db, lookup).recompute(stage.id, student_id)

    db.refresh(exemption)
    logger.info("exemption set: stage=%s student=%s by teacher %s", stage_id, student_id, teacher_id)

    if audit is not None:
        audit.record(
            AuditEventType.STAGE_EXEMPTION_SET,
            teacher_id,
            {
                "stageId": stage_id,
                "studentId": student_id,
                "allowAfterHard": override.allow_after_hard,
                "reason": override.reason,
            },
        )
    return exemption
