from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ExemptionOverride(BaseModel):
    allow_after_hard: bool = False
    custom_soft: Optional[datetime] = None
    custom_hard: Optional[datetime] = None
    reason: Optional[str] = None


class ExemptionUpsert(ExemptionOverride):
    stage_id: int
    student_id: int


class ExemptionRead(BaseModel):
    id: int
    stage_id: int
    student_id: int
    allow_after_hard: bool
    custom_soft: Optional[datetime] = None
    custom_hard: Optional[datetime] = None
    teacher_id: int
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
