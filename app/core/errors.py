"""Errors raised by the grading and scoring services.

Each error carries the machine-readable ``code`` and the HTTP status routers
answer with, so the translation to a response body lives in one place.
"""
from typing import Any

from fastapi import HTTPException, status


class GradingError(Exception):
    """Base exception for grading and scorecard errors."""

    code = "GRADING_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: dict[str, Any] | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if code is not None:
            self.code = code

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.to_body())


class MissingFieldsError(GradingError):
    code = "MISSING_REQUIRED_FIELDS"

    def __init__(self, fields: list[str]):
        super().__init__("Missing required fields", details={"fields": fields})


class StudentNotFoundError(GradingError):
    code = "STUDENT_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Student not found"):
        super().__init__(message)


class ExamNotFoundError(GradingError):
    code = "EXAM_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Exam not found", code: str | None = None):
        super().__init__(message, code=code)


class AlreadyTakenError(GradingError):
    """The student already holds an attempt for this exam."""

    code = "EXAM_ALREADY_TAKEN"

    def __init__(self, previous_score: int | None, previous_attempt_id: int):
        super().__init__(
            "You have already taken this exam",
            details={"previous_score": previous_score, "previous_attempt_id": previous_attempt_id},
        )
        self.previous_score = previous_score
        self.previous_attempt_id = previous_attempt_id


class NoAcademicYearError(GradingError):
    code = "NO_ACADEMIC_YEAR"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "No academic year is configured"):
        super().__init__(message)


class SemesterNotFoundError(GradingError):
    code = "SEMESTER_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, academic_year_id: int):
        super().__init__(
            f"No semester found for academic year {academic_year_id}",
            details={"academic_year_id": academic_year_id},
        )


class InvalidCredentialsError(GradingError):
    code = "INVALID_CREDENTIALS"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class MalformedAnswerError(GradingError):
    """A submitted answer cannot be graded. Contained to a single question."""

    code = "MALFORMED_ANSWER"
