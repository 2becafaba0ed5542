"""Service for loading an exam together with everything needed to grade it."""
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ExamNotFoundError
from app.models import Exam, ExamQuestion, ExamType, Question


@dataclass(frozen=True)
class AssembledOption:
    option_id: int
    text: str
    is_correct: bool


@dataclass(frozen=True)
class AssembledQuestion:
    question_id: int
    question_text: str
    type: str
    mark: int  # weight of the question within this exam
    options: list[AssembledOption] = field(default_factory=list)

    @property
    def correct_option(self) -> AssembledOption | None:
        return next((option for option in self.options if option.is_correct), None)

    def find_option(self, option_id: int) -> AssembledOption | None:
        return next((option for option in self.options if option.option_id == option_id), None)


@dataclass(frozen=True)
class AssembledExam:
    id: int
    uuid: str
    title: str
    subject_id: int
    semester_id: int | None
    total_mark: int
    passing_mark: int
    exam_type: str
    time_limit: int
    questions: list[AssembledQuestion] = field(default_factory=list)


class ExamAssembly:
    """Builds :class:`AssembledExam` snapshots from the exam tables."""

    async def load_exam_with_questions(self, session: AsyncSession, exam_id: int) -> AssembledExam:
        """
        Load an exam with every attached question and its options.

        The mark on each question is the ExamQuestion weight, not anything stored
        on the question itself, since questions are reused across exams.

        Raises:
            ExamNotFoundError: If the exam id does not resolve
        """
        exam = await session.get(Exam, exam_id)
        if exam is None:
            raise ExamNotFoundError()
        return await self._assemble(session, exam)

    async def exam_exists(self, session: AsyncSession, exam_id: int) -> bool:
        return await session.get(Exam, exam_id) is not None

    async def load_quiz_with_questions(self, session: AsyncSession, quiz_uuid: str) -> AssembledExam:
        """Load a quiz addressed by its public identifier."""
        stmt = select(Exam).where(Exam.uuid == quiz_uuid, Exam.exam_type == ExamType.QUIZ)
        result = await session.execute(stmt)
        exam = result.scalar_one_or_none()
        if exam is None:
            raise ExamNotFoundError("Quiz not found", code="QUIZ_NOT_FOUND")
        return await self._assemble(session, exam)

    async def _assemble(self, session: AsyncSession, exam: Exam) -> AssembledExam:
        stmt = (
            select(ExamQuestion)
            .where(ExamQuestion.exam_id == exam.id)
            .options(selectinload(ExamQuestion.question).selectinload(Question.options))
            .order_by(ExamQuestion.id)
        )
        result = await session.execute(stmt)
        exam_questions = result.scalars().all()

        questions = [
            AssembledQuestion(
                question_id=eq.question.id,
                question_text=eq.question.question_text,
                type=eq.question.type.value,
                mark=eq.mark,
                options=[
                    AssembledOption(option_id=option.id, text=option.text, is_correct=option.is_correct)
                    for option in eq.question.options
                ],
            )
            for eq in exam_questions
        ]

        return AssembledExam(
            id=exam.id,
            uuid=exam.uuid,
            title=exam.title,
            subject_id=exam.subject_id,
            semester_id=exam.semester_id,
            total_mark=exam.total_mark,
            passing_mark=exam.passing_mark,
            exam_type=exam.exam_type.value,
            time_limit=exam.time_limit,
            questions=questions,
        )
