from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coursework.core.current_user import Actor
from coursework.core.deps import get_audit_sink, get_db
from coursework.core.permissions import require_teacher
from coursework.grading.audit import AuditSink
from coursework.schemas.exemption import ExemptionOverride, ExemptionRead, ExemptionUpsert
from coursework.services.exemptions import upsert_exemption
from coursework.services.transaction import run_with_conflict_retry

router = APIRouter()


@router.post("", response_model=ExemptionRead)
def upsert(
    payload: ExemptionUpsert,
    db: Session = Depends(get_db),
    teacher: Actor = Depends(require_teacher),
    audit: AuditSink = Depends(get_audit_sink),
):
    override = ExemptionOverride(**payload.model_dump(exclude={"stage_id", "student_id"}))
    return run_with_conflict_retry(
        upsert_exemption,
        db,
        payload.stage_id,
        payload.student_id,
        override,
        teacher.id,
        audit=audit,
    )
