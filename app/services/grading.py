"""Transactional exam and quiz grading workflow."""
import enum
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.errors import (
    ExamNotFoundError,
    GradingError,
    InvalidCredentialsError,
    MissingFieldsError,
    StudentNotFoundError,
)
from app.core.security import verify_password
from app.models import Student
from app.services.academic_calendar import AcademicCalendar
from app.services.answer_grader import AnswerGrader, GradingResult, SubmittedAnswer
from app.services.archive_ledger import ArchiveLedger, GradeEntry
from app.services.attempt_ledger import AttemptLedger, already_taken, is_unique_violation
from app.services.exam_assembly import AssembledExam, ExamAssembly
from app.services.students import StudentDirectory
from app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class GradingState(enum.Enum):
    REQUESTED = "requested"
    VALIDATED = "validated"
    ATTEMPT_CREATED = "attempt_created"
    QUESTIONS_GRADED = "questions_graded"
    SCORE_FINALIZED = "score_finalized"
    LEDGER_UPDATED = "ledger_updated"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class GradingOutcome:
    attempt_id: int
    exam: AssembledExam
    total_score: int
    grade_id: int
    results: list[GradingResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.total_score >= self.exam.passing_mark

    @property
    def correct_answers(self) -> int:
        return sum(1 for result in self.results if result.is_correct)

    def exam_response(self) -> dict[str, Any]:
        return {
            "total_mark": self.exam.total_mark,
            "totalScore": self.total_score,
            "passingScore": self.exam.passing_mark,
            "passed": self.passed,
            "results": [result.to_dict() for result in self.results],
        }

    def quiz_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "totalScore": self.total_score,
            "totalQuestions": len(self.exam.questions),
            "correctAnswers": self.correct_answers,
            "passed": self.passed,
            "passingScore": self.exam.passing_mark,
            "results": [result.to_dict() for result in self.results],
        }


class GradingService:
    """
    Grades a student's submission exactly once and records it in the grade ledger.

    Both the exam flow (authenticated session, exam id) and the quiz flow
    (public quiz identifier, email plus credential) share one pipeline:

        validate -> create attempt -> grade questions -> finalize score
        -> append grade to the student's archive -> commit

    Everything after the attempt insert happens in one transaction. A failure at
    any point rolls the whole sequence back, so an attempt never exists without
    its answers and grade ledger entry.
    """

    def __init__(
        self,
        grader: AnswerGrader | None = None,
        exam_assembly: ExamAssembly | None = None,
        attempts: AttemptLedger | None = None,
        archives: ArchiveLedger | None = None,
        calendar: AcademicCalendar | None = None,
        students: StudentDirectory | None = None,
        clock: Callable[[], date] = date.today,
        quiz_password_required: bool | None = None,
    ):
        self.grader = grader or AnswerGrader()
        self.exam_assembly = exam_assembly or ExamAssembly()
        self.attempts = attempts or AttemptLedger()
        self.archives = archives or ArchiveLedger()
        self.calendar = calendar or AcademicCalendar()
        self.students = students or StudentDirectory()
        self.clock = clock
        self.quiz_password_required = (
            settings.quiz_password_required if quiz_password_required is None else quiz_password_required
        )

    async def grade_exam(
        self,
        session: AsyncSession,
        exam_id: int | None,
        email: str | None,
        answers: Sequence[SubmittedAnswer] | None,
    ) -> GradingOutcome:
        """
        Grade an exam submission for the student owning ``email``.

        Raises:
            MissingFieldsError: exam_id, email or answers absent (nothing is opened)
            StudentNotFoundError: No student owns the email
            AlreadyTakenError: The student already has an attempt for this exam
            ExamNotFoundError: The exam id does not resolve
            NoAcademicYearError: No academic year exists to attach the grade to
        """
        missing = [name for name, value in (("exam_id", exam_id), ("email", email), ("answers", answers)) if not _present(value)]
        if missing:
            raise MissingFieldsError(missing)

        context = {"exam_id": exam_id, "email": email}
        try:
            async with UnitOfWork(session) as uow:
                student = await self.students.find_by_email(session, email)  # type: ignore[arg-type]
                if student is None:
                    raise StudentNotFoundError()
                return await self._grade_attempt(uow, student.id, exam_id, answers, context)  # type: ignore[arg-type]
        except GradingError as e:
            logger.info(f"Grade exam rejected: {e.code}", extra=context)
            raise
        except Exception:
            logger.error("Grade exam failed", exc_info=True, extra=context)
            raise

    async def submit_quiz(
        self,
        session: AsyncSession,
        quiz_uuid: str,
        email: str | None,
        answers: Sequence[SubmittedAnswer] | None,
        password: str | None = None,
    ) -> GradingOutcome:
        """
        Grade a quiz submitted through its public identifier.

        The student is identified by email; a password is checked whenever one is
        supplied, and always when quiz passwords are required.
        """
        missing = [name for name, value in (("email", email), ("answers", answers)) if not _present(value)]
        if missing:
            raise MissingFieldsError(missing)

        context = {"quiz_id": quiz_uuid, "email": email}
        try:
            async with UnitOfWork(session) as uow:
                quiz = await self.exam_assembly.load_quiz_with_questions(session, quiz_uuid)
                context["exam_id"] = quiz.id
                student = await self._authenticate_student(session, email, password)  # type: ignore[arg-type]
                return await self._grade_attempt(uow, student.id, quiz.id, answers, context, exam=quiz)  # type: ignore[arg-type]
        except GradingError as e:
            logger.info(f"Quiz submission rejected: {e.code}", extra=context)
            raise
        except Exception:
            logger.error("Quiz submission failed", exc_info=True, extra=context)
            raise

    def grade_questions(
        self, exam: AssembledExam, answers: Sequence[SubmittedAnswer]
    ) -> tuple[list[GradingResult], int]:
        """
        Grade every question of the exam against the submitted answers.

        A fault while grading one question is contained: that question scores
        zero with an error note and the remaining questions are still graded.
        """
        answers_by_question = {answer.question_id: answer for answer in answers}
        results: list[GradingResult] = []
        total_score = 0

        for question in exam.questions:
            try:
                result = self.grader.grade(question, answers_by_question.get(question.question_id))
            except Exception as e:
                logger.warning(
                    f"Error processing question {question.question_id}: {e}",
                    extra={"exam_id": exam.id, "question_id": question.question_id},
                )
                result = GradingResult.failed(question.question_id, str(e))
            results.append(result)
            total_score += result.mark_awarded

        return results, total_score

    async def _authenticate_student(self, session: AsyncSession, email: str, password: str | None) -> Student:
        user = await self.students.find_user_by_email(session, email)
        if password is not None or self.quiz_password_required:
            if password is None or user is None or not verify_password(password, user.hashed_password):
                raise InvalidCredentialsError()
        if user is None:
            raise StudentNotFoundError()
        student = await self.students.find_by_user_id(session, user.id)
        if student is None:
            raise StudentNotFoundError()
        return student

    async def _grade_attempt(
        self,
        uow: UnitOfWork,
        student_id: int,
        exam_id: int,
        answers: Sequence[SubmittedAnswer],
        context: dict[str, Any],
        exam: AssembledExam | None = None,
    ) -> GradingOutcome:
        session = uow.session
        state = GradingState.REQUESTED

        try:
            # Fast path; the unique constraint on insert is authoritative
            existing = await self.attempts.find_attempt(session, student_id, exam_id)
            if existing is not None:
                raise already_taken(existing)
            state = GradingState.VALIDATED

            try:
                attempt = await self.attempts.create_attempt(session, student_id, exam_id)
            except IntegrityError as e:
                await uow.rollback()
                existing = await self.attempts.find_attempt(session, student_id, exam_id)
                if existing is not None:
                    raise already_taken(existing) from e
                if not is_unique_violation(e) and not await self.exam_assembly.exam_exists(session, exam_id):
                    raise ExamNotFoundError() from e
                raise
            state = GradingState.ATTEMPT_CREATED

            if exam is None:
                exam = await self.exam_assembly.load_exam_with_questions(session, exam_id)

            results, total_score = self.grade_questions(exam, answers)
            await self.attempts.record_answers(session, attempt, results)
            state = GradingState.QUESTIONS_GRADED

            await self.attempts.finalize_score(session, attempt, total_score)
            state = GradingState.SCORE_FINALIZED

            today = self.clock()
            academic_year = await self.calendar.current_academic_year(session, today)
            semester = await self.calendar.semester_for(session, academic_year, today)
            archive = await self.archives.resolve_archive(session, student_id, academic_year)
            grade = await self.archives.append_grade(
                session,
                GradeEntry(
                    archive_id=archive.id,
                    semester_id=semester.id,
                    subject_id=exam.subject_id,
                    type=exam.exam_type,
                    grade=total_score,
                    min_score=exam.passing_mark,
                    max_score=exam.total_mark,
                ),
            )
            state = GradingState.LEDGER_UPDATED

            await uow.commit()
            state = GradingState.COMMITTED
        except Exception:
            if state is not GradingState.REQUESTED:
                failed_state, state = state, GradingState.ROLLED_BACK
                logger.warning(
                    "Grading rolled back",
                    extra={**context, "failed_state": failed_state.value, "state": state.value},
                )
            raise

        logger.info(
            "Exam graded",
            extra={**context, "attempt_id": attempt.id, "total_score": total_score, "grade_id": grade.id},
        )
        return GradingOutcome(
            attempt_id=attempt.id,
            exam=exam,
            total_score=total_score,
            grade_id=grade.id,
            results=results,
        )


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True
