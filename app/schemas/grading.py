"""Exam and quiz grading schemas."""
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator


def normalize_email(value: str | None) -> str | None:
    """Trim and lowercase. Any domain is accepted, internal ones included."""
    if value is None:
        return None
    return value.strip().lower()


class AnswerSubmission(BaseModel):
    """One submitted answer. Accepts snake_case and camelCase keys."""

    question_id: int = Field(validation_alias=AliasChoices("question_id", "questionId"))
    option_id: int | None = Field(None, validation_alias=AliasChoices("option_id", "optionId"))


class ExamSubmission(BaseModel):
    """Exam submission request.

    Fields are optional here so the grading service can answer with
    MISSING_REQUIRED_FIELDS instead of a schema validation error.
    """

    exam_id: int | None = None
    email: str | None = Field(None, max_length=255)
    answers: list[AnswerSubmission] | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return normalize_email(v)


class QuizSubmission(BaseModel):
    """Quiz submission request."""

    email: str | None = Field(None, max_length=255)
    password: str | None = None
    answers: list[AnswerSubmission] | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return normalize_email(v)


class QuestionResultResponse(BaseModel):
    question_id: int
    is_correct: bool
    mark_awarded: int
    feedback: str
    option_id: int | None = None
    error: str | None = None


class GradeExamResponse(BaseModel):
    total_mark: int
    totalScore: int
    passingScore: int
    passed: bool
    results: list[QuestionResultResponse]


class QuizSubmitResponse(BaseModel):
    success: bool
    totalScore: int
    totalQuestions: int
    correctAnswers: int
    passed: bool
    passingScore: int
    results: list[QuestionResultResponse]


class ExamAttemptResponse(BaseModel):
    id: int
    exam_id: int
    student_id: int
    score: int | None
    created_at: datetime

    class Config:
        from_attributes = True


class QuizOptionResponse(BaseModel):
    option_id: int
    text: str


class QuizQuestionResponse(BaseModel):
    question_id: int
    question_text: str
    type: str
    mark: int
    options: list[QuizOptionResponse]


class QuizDataResponse(BaseModel):
    """Quiz paper as shown to a student. Correct options are never included."""

    quiz_id: str
    title: str
    time_limit: int
    total_mark: int
    passing_mark: int
    questions: list[QuizQuestionResponse]
