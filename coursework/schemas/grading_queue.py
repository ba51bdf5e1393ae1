from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from coursework.grading.lifecycle import RevisionStatus


class QueueEntryRead(BaseModel):
    artifact_id: int
    student_id: int
    stage_id: int
    task_id: int
    course_id: int
    album_number: Optional[str] = None
    student_name: Optional[str] = None

    last_revision_id: Optional[int] = None
    last_revision_status: Optional[RevisionStatus] = None
    last_submitted_at: Optional[datetime] = None

    soft_deadline: Optional[datetime] = None
    hard_deadline: Optional[datetime] = None
    late_days_started: Optional[int] = None
    penalty_percent_applied: Optional[float] = None
    penalty_skipped: bool = False

    last_points_brutto: Optional[float] = None
    last_points_netto: Optional[float] = None
    last_accepted_revision_id: Optional[int] = None
    last_accepted_points_netto: Optional[float] = None

    flag_new_submission: bool = False

    class Config:
        from_attributes = True


class AggregationRead(BaseModel):
    task_id: int
    student_id: int
    points_net: float
    weight_total: int
