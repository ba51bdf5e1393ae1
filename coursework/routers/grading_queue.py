from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from coursework.core.current_user import Actor, get_current_actor
from coursework.core.deps import get_db
from coursework.core.permissions import require_teacher
from coursework.grading.lifecycle import RevisionStatus
from coursework.schemas.grading_queue import QueueEntryRead
from coursework.services.queries import (
    DeadlineFilter,
    SortKey,
    get_queue_entry,
    list_stage_queue,
)

router = APIRouter()


@router.get("/artifact/{artifact_id}/student/{student_id}", response_model=QueueEntryRead)
def queue_entry(
    artifact_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    me: Actor = Depends(get_current_actor),
):
    if me.role == "student" and me.id != student_id:
        raise HTTPException(status_code=403, detail="Cannot view another student's queue entry")

    entry = get_queue_entry(db, artifact_id, student_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="No submission for this artifact yet")
    return entry


@router.get("/stage/{stage_id}", response_model=list[QueueEntryRead])
def stage_queue(
    stage_id: int,
    status: Optional[RevisionStatus] = None,
    deadline: Optional[DeadlineFilter] = None,
    group: Optional[str] = None,
    sort_by: SortKey = "deadline",
    db: Session = Depends(get_db),
    teacher: Actor = Depends(require_teacher),
):
    return list_stage_queue(
        db,
        stage_id,
        status=status,
        deadline_filter=deadline,
        album_prefix=group,
        sort_by=sort_by,
    )
