"""Per-question grading of submitted answers.

Graders are pure: they decide correctness and the mark awarded, and leave
persistence to the caller. Question types map to a :class:`Grader`; any type
without an automatic grader is scored zero and flagged for manual review.
"""
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Protocol

from app.core.errors import MalformedAnswerError
from app.models import QuestionType
from app.services.exam_assembly import AssembledQuestion

NO_ANSWER_FEEDBACK = "No answer provided"
NOT_AUTO_GRADABLE_FEEDBACK = "This question type cannot be auto-graded"
CORRECT_FEEDBACK = "Correct!"
ERROR_FEEDBACK = "Error processing question"


class SubmittedAnswer(Protocol):
    question_id: int
    option_id: int | None


@dataclass
class GradingResult:
    question_id: int
    is_correct: bool
    mark_awarded: int
    feedback: str
    option_id: int | None = None
    error: str | None = None

    @property
    def should_persist(self) -> bool:
        """Only answers that selected an option become Answer rows."""
        return self.option_id is not None and self.error is None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if data["error"] is None:
            del data["error"]
        return data

    @classmethod
    def failed(cls, question_id: int, error: str) -> "GradingResult":
        return cls(
            question_id=question_id,
            is_correct=False,
            mark_awarded=0,
            feedback=ERROR_FEEDBACK,
            error=error,
        )


class Grader(ABC):
    """Grades one question type."""

    @abstractmethod
    def grade(self, question: AssembledQuestion, answer: SubmittedAnswer) -> GradingResult:
        ...


class MultipleChoiceGrader(Grader):
    def grade(self, question: AssembledQuestion, answer: SubmittedAnswer) -> GradingResult:
        if answer.option_id is None:
            raise MalformedAnswerError("Missing option_id for MCQ question")

        selected = question.find_option(answer.option_id)
        if selected is None:
            raise MalformedAnswerError("This option does not belong to this question")

        correct = question.correct_option
        is_correct = correct is not None and selected.option_id == correct.option_id
        if is_correct:
            feedback = CORRECT_FEEDBACK
        elif correct is not None:
            feedback = f"The correct answer was: {correct.text}"
        else:
            feedback = "No correct option is configured for this question"

        return GradingResult(
            question_id=question.question_id,
            is_correct=is_correct,
            mark_awarded=question.mark if is_correct else 0,
            feedback=feedback,
            option_id=selected.option_id,
        )


class ManualReviewGrader(Grader):
    """Scores zero; the question needs a human to mark it."""

    def grade(self, question: AssembledQuestion, answer: SubmittedAnswer) -> GradingResult:
        return GradingResult(
            question_id=question.question_id,
            is_correct=False,
            mark_awarded=0,
            feedback=NOT_AUTO_GRADABLE_FEEDBACK,
        )


class AnswerGrader:
    """Dispatches each question to the grader registered for its type."""

    def __init__(self, graders: dict[str, Grader] | None = None, fallback: Grader | None = None):
        self.graders = graders if graders is not None else {QuestionType.MCQ.value: MultipleChoiceGrader()}
        self.fallback = fallback or ManualReviewGrader()

    def grade(self, question: AssembledQuestion, answer: SubmittedAnswer | None) -> GradingResult:
        """
        Grade a single question.

        Absent answers score zero without error. Malformed answers raise
        MalformedAnswerError so the caller can contain the failure to this question.
        """
        if answer is None:
            return GradingResult(
                question_id=question.question_id,
                is_correct=False,
                mark_awarded=0,
                feedback=NO_ANSWER_FEEDBACK,
            )

        grader = self.graders.get(question.type, self.fallback)
        return grader.grade(question, answer)
