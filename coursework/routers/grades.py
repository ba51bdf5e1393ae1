from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from coursework.core.current_user import Actor
from coursework.core.deps import get_audit_sink, get_db
from coursework.core.permissions import require_teacher
from coursework.grading.audit import AuditSink
from coursework.schemas.grade import GradeRead, GradeRevisionRequest
from coursework.services.grades import grade_revision
from coursework.services.transaction import run_with_conflict_retry

router = APIRouter()


@router.post("", response_model=GradeRead, status_code=status.HTTP_201_CREATED)
def grade(
    payload: GradeRevisionRequest,
    db: Session = Depends(get_db),
    teacher: Actor = Depends(require_teacher),
    audit: AuditSink = Depends(get_audit_sink),
):
    return run_with_conflict_retry(
        grade_revision,
        db,
        payload.revision_id,
        teacher.id,
        payload.points,
        payload.comment,
        payload.status_after_grade,
        payload.skip_penalty,
        audit=audit,
    )
