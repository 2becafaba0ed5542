"""Exam attempt and answer persistence."""
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AlreadyTakenError
from app.models import Answer, ExamAttempt
from app.services.answer_grader import GradingResult


class AttemptLedger:
    """Creates, reads and finalizes the single attempt a student holds per exam."""

    async def find_attempt(self, session: AsyncSession, student_id: int, exam_id: int) -> ExamAttempt | None:
        stmt = select(ExamAttempt).where(ExamAttempt.student_id == student_id, ExamAttempt.exam_id == exam_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_attempt(self, session: AsyncSession, attempt_id: int) -> ExamAttempt | None:
        return await session.get(ExamAttempt, attempt_id)

    async def list_attempts(self, session: AsyncSession, exam_id: int | None = None) -> list[ExamAttempt]:
        stmt = select(ExamAttempt).order_by(ExamAttempt.id)
        if exam_id is not None:
            stmt = stmt.where(ExamAttempt.exam_id == exam_id)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def create_attempt(self, session: AsyncSession, student_id: int, exam_id: int) -> ExamAttempt:
        """
        Insert the attempt row with a zero placeholder score.

        The insert is flushed immediately so the (student, exam) unique constraint
        is checked here rather than at commit.

        Raises:
            IntegrityError: If the row violates a storage constraint
        """
        attempt = ExamAttempt(student_id=student_id, exam_id=exam_id, score=0)
        session.add(attempt)
        await session.flush()
        return attempt

    async def record_answers(self, session: AsyncSession, attempt: ExamAttempt, results: list[GradingResult]) -> int:
        """Add one Answer row per graded question that selected an option."""
        count = 0
        for result in results:
            if not result.should_persist:
                continue
            session.add(
                Answer(
                    question_id=result.question_id,
                    exam_attempt_id=attempt.id,
                    option_id=result.option_id,
                    mark_awarded=result.mark_awarded,
                )
            )
            count += 1
        return count

    async def finalize_score(self, session: AsyncSession, attempt: ExamAttempt, score: int) -> ExamAttempt:
        attempt.score = score
        await session.flush()
        return attempt


def is_unique_violation(error: IntegrityError) -> bool:
    """Check whether an IntegrityError came from the attempt uniqueness constraint."""
    error_str = str(error.orig) if getattr(error, "orig", None) is not None else str(error)
    error_str = error_str.lower()
    return (
        "uq_exam_attempt_student_exam" in error_str
        or "unique constraint" in error_str
        or "duplicate" in error_str
    )


def already_taken(attempt: ExamAttempt) -> AlreadyTakenError:
    return AlreadyTakenError(previous_score=attempt.score, previous_attempt_id=attempt.id)
