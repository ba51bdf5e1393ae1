from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coursework.core.current_user import Actor
from coursework.core.deps import get_db
from coursework.core.permissions import require_teacher
from coursework.schemas.grading_queue import AggregationRead
from coursework.services.queries import aggregate_task

router = APIRouter()


@router.get("/task/{task_id}/student/{student_id}", response_model=AggregationRead)
def aggregate(
    task_id: int,
    student_id: int,
    source: Literal["queue", "revisions"] = "queue",
    db: Session = Depends(get_db),
    teacher: Actor = Depends(require_teacher),
):
    result = aggregate_task(db, task_id, student_id, from_revisions=source == "revisions")
    return AggregationRead(
        task_id=task_id,
        student_id=student_id,
        points_net=result.points,
        weight_total=result.weight_total,
    )
