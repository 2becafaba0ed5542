"""Manual grade ledger schemas."""
from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class GradeCreate(BaseModel):
    """A grade entered by staff, e.g. a worksheet or an assignment."""

    student_id: int
    subject_id: int
    semester_id: int
    type: str = Field(..., min_length=1, max_length=50)
    grade: float = Field(..., ge=0)
    min_score: float = Field(..., ge=0)
    max_score: float = Field(..., ge=0)

    @model_validator(mode="after")
    def check_bounds(self) -> "GradeCreate":
        if self.min_score > self.max_score:
            raise ValueError("min_score cannot exceed max_score")
        return self


class GradeResponse(BaseModel):
    id: int
    archive_id: int
    subject_id: int
    semester_id: int
    type: str
    grade: float
    min_score: float
    max_score: float
    created_at: datetime

    class Config:
        from_attributes = True
