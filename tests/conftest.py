import asyncio
from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import NullPool, create_engine
from sqlalchemy.orm import Session

from app.core.security import create_access_token, get_password_hash
from app.dependencies.database import Base, TestingDatabaseSessionManager, get_db_session
from app.dependencies.grading import get_grading_service
from app.main import app
from app.models import (
    AcademicYear,
    Exam,
    ExamQuestion,
    ExamType,
    Option,
    Question,
    QuestionType,
    Semester,
    Student,
    Subject,
    User,
    UserRole,
)
from app.services.grading import GradingService

TODAY = date(2025, 10, 15)
STUDENT_EMAIL = "ama.mensah@school.edu"
STUDENT_PASSWORD = "secret-pass"


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'grading.db'}"


@pytest.fixture
def sync_engine(database_url):
    engine = create_engine(database_url)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(sync_engine):
    with Session(sync_engine) as session:
        yield session


@pytest.fixture
def client(database_url, sync_engine):
    manager = TestingDatabaseSessionManager(database_url, {"poolclass": NullPool})
    asyncio.run(manager.configure())

    async def override_get_db_session():
        async with manager.session() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_grading_service] = lambda: GradingService(clock=lambda: TODAY)
    yield TestClient(app)
    app.dependency_overrides.clear()
    asyncio.run(manager.close())


def _auth_headers(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


def _option_id(question: Question, text: str) -> int:
    return next(option.id for option in question.options if option.text == text)


def _question(subject: Subject, text: str, options: list[tuple[str, bool]], type=QuestionType.MCQ) -> Question:
    question = Question(subject=subject, question_text=text, type=type)
    question.options = [Option(text=option_text, is_correct=is_correct) for option_text, is_correct in options]
    return question


@pytest.fixture
def school(db):
    """
    One student, one teacher, the 2025/26 academic year and two papers.

    The exam has two MCQ questions weighted 5 and 10 (pass mark 8). The quiz
    has one MCQ weighted 10 and one true/false question (pass mark 5).
    """
    student_user = User(
        email=STUDENT_EMAIL,
        hashed_password=get_password_hash(STUDENT_PASSWORD),
        full_name="Ama Mensah",
        role=UserRole.STUDENT,
    )
    other_user = User(
        email="kofi.boateng@school.edu",
        hashed_password=get_password_hash("another-pass"),
        full_name="Kofi Boateng",
        role=UserRole.STUDENT,
    )
    teacher = User(
        email="teacher@school.edu",
        hashed_password=get_password_hash("teacher-pass"),
        full_name="Yaw Owusu",
        role=UserRole.TEACHER,
    )
    student = Student(user=student_user)
    other_student = Student(user=other_user)

    year = AcademicYear(start_year=date(2025, 9, 1), end_year=date(2026, 6, 30), full_tuition=1200)
    first = Semester(
        academic_year=year, semester_name="First Semester", start_date=date(2025, 9, 1), end_date=date(2026, 1, 31)
    )
    second = Semester(
        academic_year=year, semester_name="Second Semester", start_date=date(2026, 2, 1), end_date=date(2026, 6, 30)
    )
    maths = Subject(name="Mathematics")

    q1 = _question(maths, "2 + 3 = ?", [("5", True), ("6", False)])
    q2 = _question(maths, "7 x 8 = ?", [("56", True), ("54", False)])
    q3 = _question(maths, "Square root of 81?", [("9", True), ("8", False)])
    q4 = _question(maths, "Zero is even.", [("True", True), ("False", False)], type=QuestionType.TRUE_FALSE)

    exam = Exam(
        subject=maths,
        title="Mid-term Mathematics",
        time_limit=60,
        total_mark=15,
        passing_mark=8,
        exam_type=ExamType.EXAM,
    )
    exam.exam_questions = [ExamQuestion(question=q1, mark=5), ExamQuestion(question=q2, mark=10)]

    quiz = Exam(
        uuid="a1b2c3d4e5",
        subject=maths,
        title="Roots quiz",
        time_limit=10,
        total_mark=10,
        passing_mark=5,
        exam_type=ExamType.QUIZ,
    )
    quiz.exam_questions = [ExamQuestion(question=q3, mark=10), ExamQuestion(question=q4, mark=5)]

    db.add_all([student, other_student, teacher, first, second, exam, quiz])
    db.commit()

    return SimpleNamespace(
        student_user=student_user,
        other_user=other_user,
        teacher=teacher,
        student=student,
        other_student=other_student,
        year=year,
        first_semester=first,
        second_semester=second,
        subject=maths,
        exam=exam,
        quiz=quiz,
        q1=q1,
        q2=q2,
        q3=q3,
        q4=q4,
        student_email=STUDENT_EMAIL,
        student_password=STUDENT_PASSWORD,
        option_id=_option_id,
        headers=_auth_headers,
    )

