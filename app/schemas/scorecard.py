"""Scorecard response schemas."""
from pydantic import BaseModel


class AssignmentScore(BaseModel):
    score: float
    min_score: float
    max_score: float
    percentage: float


class GradeTypeSummary(BaseModel):
    type: str
    assignments: list[AssignmentScore]
    typeAverage: float
    assignment_count: int
    typeTotal: float


class SubjectSummary(BaseModel):
    subject_id: int
    subject_name: str
    grade_types: list[GradeTypeSummary]
    subjectAverage: float
    totalAssignments: int
    totalScore: float


class SemesterScorecard(BaseModel):
    semester_id: int
    semester_name: str
    subjects: list[SubjectSummary]
    semesterAverage: float
    totalSemesterAssignments: int
    totalSemesterScore: float
