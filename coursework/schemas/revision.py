from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from coursework.grading.lifecycle import RevisionStatus
from coursework.schemas.grade import GradeRead


class FileRef(BaseModel):
    file_key: str = Field(min_length=1, max_length=512)
    original_file_name: str = Field(min_length=1, max_length=255)
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = Field(default=None, ge=0)
    comment: Optional[str] = None


class RevisionSubmit(FileRef):
    artifact_id: int


class RevisionRead(BaseModel):
    id: int
    artifact_id: int
    student_id: int
    created_at: datetime
    file_key: str
    original_file_name: str
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = None
    comment: Optional[str] = None
    status: RevisionStatus

    class Config:
        from_attributes = True


class RevisionHistoryRow(RevisionRead):
    grades: list[GradeRead] = []
