from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from coursework.models.task import GradingMode


class StageCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    weight_percent: int = Field(ge=0, le=100)
    soft_deadline: Optional[datetime] = None
    hard_deadline: Optional[datetime] = None
    penalty_k_percent_per_24h: Optional[float] = None
    penalty_max_m_percent: Optional[float] = None


class StageUpdate(StageCreate):
    pass


class StageRead(StageCreate):
    id: int
    task_id: int

    class Config:
        from_attributes = True


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    grading_mode: GradingMode = GradingMode.PERCENT
    max_points: Optional[float] = Field(default=None, gt=0)
    stages: list[StageCreate]


class TaskRead(BaseModel):
    id: int
    course_id: int
    title: str
    description: Optional[str] = None
    grading_mode: GradingMode
    max_points: float
    stages: list[StageRead] = []

    class Config:
        from_attributes = True


class ArtifactCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    max_size_bytes: Optional[int] = Field(default=None, gt=0)
    allowed_extensions_csv: Optional[str] = None


class ArtifactRead(ArtifactCreate):
    id: int
    stage_id: int

    class Config:
        from_attributes = True


class WeightStatusRead(BaseModel):
    current_total: int
    remaining: int
    stage_count: int
