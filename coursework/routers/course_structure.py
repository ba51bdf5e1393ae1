from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from coursework.core.current_user import Actor
from coursework.core.deps import get_audit_sink, get_db
from coursework.core.permissions import require_teacher
from coursework.grading.audit import AuditSink
from coursework.schemas.task import (
    ArtifactCreate,
    ArtifactRead,
    StageRead,
    StageUpdate,
    TaskCreate,
    TaskRead,
    WeightStatusRead,
)
from coursework.services.course_structure import (
    create_artifact,
    create_task,
    task_weight_status,
    update_stage,
)

router = APIRouter()


@router.post(
    "/courses/{course_id}/tasks",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
)
def add_task(
    course_id: int,
    payload: TaskCreate,
    db: Session = Depends(get_db),
    teacher: Actor = Depends(require_teacher),
    audit: AuditSink = Depends(get_audit_sink),
):
    return create_task(db, course_id, payload, teacher.id, audit=audit)


@router.get("/tasks/{task_id}/weights", response_model=WeightStatusRead)
def weights(
    task_id: int,
    db: Session = Depends(get_db),
    teacher: Actor = Depends(require_teacher),
):
    s = task_weight_status(db, task_id)
    return WeightStatusRead(current_total=s.current_total, remaining=s.remaining, stage_count=s.stage_count)


@router.put("/stages/{stage_id}", response_model=StageRead)
def edit_stage(
    stage_id: int,
    payload: StageUpdate,
    db: Session = Depends(get_db),
    teacher: Actor = Depends(require_teacher),
    audit: AuditSink = Depends(get_audit_sink),
):
    return update_stage(db, stage_id, payload, teacher.id, audit=audit)


@router.post(
    "/stages/{stage_id}/artifacts",
    response_model=ArtifactRead,
    status_code=status.HTTP_201_CREATED,
)
def add_artifact(
    stage_id: int,
    payload: ArtifactCreate,
    db: Session = Depends(get_db),
    teacher: Actor = Depends(require_teacher),
    audit: AuditSink = Depends(get_audit_sink),
):
    return create_artifact(db, stage_id, payload, teacher.id, audit=audit)
