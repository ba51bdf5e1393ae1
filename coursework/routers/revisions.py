from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from coursework.core.current_user import Actor, get_current_actor
from coursework.core.deps import get_audit_sink, get_db
from coursework.grading.audit import AuditSink
from coursework.schemas.revision import RevisionHistoryRow, RevisionRead, RevisionSubmit
from coursework.services.revisions import revision_history, submit_revision
from coursework.services.transaction import run_with_conflict_retry

router = APIRouter()


@router.post("", response_model=RevisionRead, status_code=status.HTTP_201_CREATED)
def submit(
    payload: RevisionSubmit,
    db: Session = Depends(get_db),
    me: Actor = Depends(get_current_actor),
    audit: AuditSink = Depends(get_audit_sink),
):
    return run_with_conflict_retry(
        submit_revision,
        db,
        payload.artifact_id,
        me.id,
        payload,
        audit=audit,
    )


@router.get(
    "/artifact/{artifact_id}/student/{student_id}",
    response_model=list[RevisionHistoryRow],
)
def history(
    artifact_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    me: Actor = Depends(get_current_actor),
):
    # students only see their own revisions
    if me.role == "student" and me.id != student_id:
        raise HTTPException(status_code=403, detail="Cannot view another student's revisions")
    return revision_history(db, artifact_id, student_id)
