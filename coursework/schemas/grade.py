from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from coursework.grading.lifecycle import RevisionStatus


class GradeRevisionRequest(BaseModel):
    revision_id: int
    points: float
    comment: Optional[str] = None
    status_after_grade: RevisionStatus
    skip_penalty: bool = False


class GradeRead(BaseModel):
    id: int
    revision_id: int
    teacher_id: int
    created_at: datetime
    points_brutto: Optional[float] = None
    points_netto: Optional[float] = None
    penalty_skipped: bool = False
    comment: Optional[str] = None
    status_after_grade: RevisionStatus

    class Config:
        from_attributes = True
