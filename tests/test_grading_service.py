import asyncio
from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import (
    AlreadyTakenError,
    ExamNotFoundError,
    InvalidCredentialsError,
    MissingFieldsError,
    NoAcademicYearError,
    StudentNotFoundError,
)
from app.core.security import get_password_hash
from app.services.exam_assembly import AssembledExam, AssembledOption, AssembledQuestion
from app.services.grading import GradingService

EMAIL = "ama.mensah@school.edu"
PASSWORD = "secret-pass"


class FakeSession:
    """Holds rows the way a transaction would: pending until commit."""

    def __init__(self):
        self.rows: list = []
        self.pending: list = []
        self.commits = 0
        self.rollbacks = 0

    def in_transaction(self) -> bool:
        return True

    async def flush(self):
        pass

    async def commit(self):
        self.rows.extend(self.pending)
        self.pending.clear()
        self.commits += 1

    async def rollback(self):
        self.pending.clear()
        self.rollbacks += 1

    def of_kind(self, kind):
        return [row for row in self.rows if row.kind == kind]


class FakeStudents:
    def __init__(self):
        self.user = SimpleNamespace(id=3, email=EMAIL, hashed_password=get_password_hash(PASSWORD))
        self.student = SimpleNamespace(id=7, user_id=3)

    async def find_by_email(self, session, email):
        return self.student if email.lower() == EMAIL else None

    async def find_user_by_email(self, session, email):
        return self.user if email.lower() == EMAIL else None

    async def find_by_user_id(self, session, user_id):
        return self.student if user_id == self.user.id else None


class FakeExamAssembly:
    def __init__(self, *exams: AssembledExam):
        self.exams = {exam.id: exam for exam in exams}

    async def load_exam_with_questions(self, session, exam_id):
        if exam_id not in self.exams:
            raise ExamNotFoundError()
        return self.exams[exam_id]

    async def exam_exists(self, session, exam_id):
        return exam_id in self.exams

    async def load_quiz_with_questions(self, session, quiz_uuid):
        for exam in self.exams.values():
            if exam.uuid == quiz_uuid and exam.exam_type == "quiz":
                return exam
        raise ExamNotFoundError("Quiz not found", code="QUIZ_NOT_FOUND")


class FakeAttempts:
    def __init__(self):
        self.hide_from_lookup = 0
        self.next_id = 100

    async def find_attempt(self, session, student_id, exam_id):
        if self.hide_from_lookup:
            self.hide_from_lookup -= 1
            return None
        for row in session.rows + session.pending:
            if row.kind == "attempt" and (row.student_id, row.exam_id) == (student_id, exam_id):
                return row
        return None

    async def create_attempt(self, session, student_id, exam_id):
        for row in session.rows:
            if row.kind == "attempt" and (row.student_id, row.exam_id) == (student_id, exam_id):
                raise IntegrityError(
                    "INSERT INTO exam_attempts",
                    {},
                    Exception("duplicate key value violates unique constraint uq_exam_attempt_student_exam"),
                )
        self.next_id += 1
        attempt = SimpleNamespace(kind="attempt", id=self.next_id, student_id=student_id, exam_id=exam_id, score=0)
        session.pending.append(attempt)
        return attempt

    async def record_answers(self, session, attempt, results):
        answers = [
            SimpleNamespace(kind="answer", attempt_id=attempt.id, question_id=r.question_id, option_id=r.option_id)
            for r in results
            if r.should_persist
        ]
        session.pending.extend(answers)
        return len(answers)

    async def finalize_score(self, session, attempt, score):
        attempt.score = score
        return attempt


class FakeCalendar:
    def __init__(self, has_year=True):
        self.has_year = has_year

    async def current_academic_year(self, session, today=None):
        if not self.has_year:
            raise NoAcademicYearError()
        return SimpleNamespace(id=1, full_tuition=1200)

    async def semester_for(self, session, academic_year, today=None):
        return SimpleNamespace(id=2)


class FakeArchives:
    async def resolve_archive(self, session, student_id, academic_year):
        return SimpleNamespace(id=9)

    async def append_grade(self, session, entry):
        grade = SimpleNamespace(kind="grade", id=len(session.pending) + len(session.rows) + 1, entry=entry)
        session.pending.append(grade)
        return grade


def _mcq(question_id, mark, correct_id, wrong_id, question_type="mcq"):
    return AssembledQuestion(
        question_id=question_id,
        question_text=f"Question {question_id}",
        type=question_type,
        mark=mark,
        options=[
            AssembledOption(option_id=correct_id, text=f"right {question_id}", is_correct=True),
            AssembledOption(option_id=wrong_id, text=f"wrong {question_id}", is_correct=False),
        ],
    )


EXAM = AssembledExam(
    id=1,
    uuid="0a1b2c3d4e",
    title="Mid-term",
    subject_id=4,
    semester_id=None,
    total_mark=15,
    passing_mark=8,
    exam_type="exam",
    time_limit=60,
    questions=[_mcq(1, 5, 11, 12), _mcq(2, 10, 21, 22)],
)

QUIZ = AssembledExam(
    id=2,
    uuid="f0e1d2c3b4",
    title="Pop quiz",
    subject_id=4,
    semester_id=None,
    total_mark=12,
    passing_mark=5,
    exam_type="quiz",
    time_limit=10,
    questions=[_mcq(3, 10, 31, 32), _mcq(4, 2, 41, 42, question_type="true_false")],
)


def answer(question_id, option_id):
    return SimpleNamespace(question_id=question_id, option_id=option_id)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def attempts():
    return FakeAttempts()


def make_service(attempts, calendar=None, quiz_password_required=False):
    return GradingService(
        exam_assembly=FakeExamAssembly(EXAM, QUIZ),
        attempts=attempts,
        archives=FakeArchives(),
        calendar=calendar or FakeCalendar(),
        students=FakeStudents(),
        clock=lambda: date(2025, 10, 15),
        quiz_password_required=quiz_password_required,
    )


def test_one_correct_one_wrong(session, attempts):
    service = make_service(attempts)

    outcome = asyncio.run(service.grade_exam(session, 1, EMAIL, [answer(1, 11), answer(2, 22)]))

    assert outcome.total_score == 5
    assert outcome.passed is False
    response = outcome.exam_response()
    assert response["total_mark"] == 15
    assert response["totalScore"] == 5
    assert response["passingScore"] == 8
    assert [r["mark_awarded"] for r in response["results"]] == [5, 0]
    assert response["results"][1]["feedback"] == "The correct answer was: right 2"

    assert session.commits == 1
    (attempt,) = session.of_kind("attempt")
    assert attempt.score == 5
    assert len(session.of_kind("answer")) == 2
    (grade,) = session.of_kind("grade")
    assert grade.entry.type == "exam"
    assert (grade.entry.grade, grade.entry.min_score, grade.entry.max_score) == (5, 8, 15)
    assert (grade.entry.archive_id, grade.entry.semester_id, grade.entry.subject_id) == (9, 2, 4)


def test_full_marks_pass(session, attempts):
    service = make_service(attempts)

    outcome = asyncio.run(service.grade_exam(session, 1, EMAIL, [answer(1, 11), answer(2, 21)]))

    assert outcome.total_score == 15
    assert outcome.passed is True


def test_unanswered_questions_score_zero(session, attempts):
    service = make_service(attempts)

    outcome = asyncio.run(service.grade_exam(session, 1, EMAIL, []))

    assert outcome.total_score == 0
    assert all(r.feedback == "No answer provided" for r in outcome.results)
    assert session.of_kind("answer") == []
    assert len(session.of_kind("grade")) == 1


def test_second_submission_is_rejected(session, attempts):
    service = make_service(attempts)
    asyncio.run(service.grade_exam(session, 1, EMAIL, [answer(1, 11)]))

    with pytest.raises(AlreadyTakenError) as exc_info:
        asyncio.run(service.grade_exam(session, 1, EMAIL, [answer(1, 11), answer(2, 21)]))

    assert exc_info.value.previous_score == 5
    assert exc_info.value.previous_attempt_id == session.of_kind("attempt")[0].id
    assert exc_info.value.to_body()["code"] == "EXAM_ALREADY_TAKEN"
    assert len(session.of_kind("attempt")) == 1
    assert len(session.of_kind("grade")) == 1


def test_concurrent_insert_is_reported_as_already_taken(session, attempts):
    service = make_service(attempts)
    asyncio.run(service.grade_exam(session, 1, EMAIL, [answer(1, 11)]))
    # The next fast-path lookup misses the committed attempt, as in a race
    attempts.hide_from_lookup = 1

    with pytest.raises(AlreadyTakenError):
        asyncio.run(service.grade_exam(session, 1, EMAIL, [answer(1, 11)]))

    assert session.rollbacks >= 1
    assert len(session.of_kind("attempt")) == 1


def test_missing_fields_are_listed(session, attempts):
    service = make_service(attempts)

    with pytest.raises(MissingFieldsError) as exc_info:
        asyncio.run(service.grade_exam(session, None, "  ", None))

    assert exc_info.value.details == {"fields": ["exam_id", "email", "answers"]}
    assert exc_info.value.status_code == 400
    assert session.rollbacks == 0


def test_unknown_student(session, attempts):
    service = make_service(attempts)

    with pytest.raises(StudentNotFoundError):
        asyncio.run(service.grade_exam(session, 1, "nobody@school.edu", []))

    assert session.rows == []


def test_unknown_exam_rolls_back(session, attempts):
    service = make_service(attempts)

    with pytest.raises(ExamNotFoundError):
        asyncio.run(service.grade_exam(session, 404, EMAIL, []))

    assert session.rows == []
    assert session.pending == []


def test_malformed_answer_is_contained(session, attempts):
    service = make_service(attempts)

    outcome = asyncio.run(service.grade_exam(session, 1, EMAIL, [answer(1, 21), answer(2, 21)]))

    first, second = outcome.results
    assert first.mark_awarded == 0
    assert first.feedback == "Error processing question"
    assert "does not belong" in first.error
    assert second.is_correct is True
    assert outcome.total_score == 10
    assert [a.question_id for a in session.of_kind("answer")] == [2]


def test_missing_academic_year_leaves_nothing_behind(session, attempts):
    service = make_service(attempts, calendar=FakeCalendar(has_year=False))

    with pytest.raises(NoAcademicYearError):
        asyncio.run(service.grade_exam(session, 1, EMAIL, [answer(1, 11)]))

    assert session.commits == 0
    assert session.rows == []
    assert session.pending == []


def test_rollback_is_logged_with_failed_state(session, attempts, caplog):
    service = make_service(attempts, calendar=FakeCalendar(has_year=False))

    with caplog.at_level("WARNING", logger="app.services.grading"):
        with pytest.raises(NoAcademicYearError):
            asyncio.run(service.grade_exam(session, 1, EMAIL, [answer(1, 11)]))

    (record,) = [r for r in caplog.records if r.getMessage() == "Grading rolled back"]
    assert record.state == "rolled_back"
    assert record.failed_state == "score_finalized"
    assert record.exam_id == 1


def test_quiz_submission(session, attempts):
    service = make_service(attempts)

    outcome = asyncio.run(
        service.submit_quiz(session, QUIZ.uuid, EMAIL, [answer(3, 31), answer(4, 41)], password=PASSWORD)
    )

    response = outcome.quiz_response()
    assert response["success"] is True
    assert response["totalScore"] == 10
    assert response["totalQuestions"] == 2
    assert response["correctAnswers"] == 1
    assert response["passed"] is True
    assert response["results"][1]["feedback"] == "This question type cannot be auto-graded"
    (grade,) = session.of_kind("grade")
    assert grade.entry.type == "quiz"


def test_quiz_wrong_password(session, attempts):
    service = make_service(attempts)

    with pytest.raises(InvalidCredentialsError):
        asyncio.run(service.submit_quiz(session, QUIZ.uuid, EMAIL, [answer(3, 31)], password="guess"))

    assert session.rows == []


def test_quiz_password_required(session, attempts):
    service = make_service(attempts, quiz_password_required=True)

    with pytest.raises(InvalidCredentialsError):
        asyncio.run(service.submit_quiz(session, QUIZ.uuid, EMAIL, [answer(3, 31)]))


def test_quiz_without_password_when_optional(session, attempts):
    service = make_service(attempts)

    outcome = asyncio.run(service.submit_quiz(session, QUIZ.uuid, EMAIL, [answer(3, 32)]))

    assert outcome.total_score == 0
    assert outcome.passed is False


def test_exam_id_is_not_a_quiz_identifier(session, attempts):
    service = make_service(attempts)

    with pytest.raises(ExamNotFoundError) as exc_info:
        asyncio.run(service.submit_quiz(session, EXAM.uuid, EMAIL, [answer(1, 11)]))

    assert exc_info.value.code == "QUIZ_NOT_FOUND"
