"""Database models - all models and enums in a single module."""
import enum
import secrets
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.dependencies.database import Base


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------


class UserRole(enum.IntEnum):
    """User roles with hierarchical permissions. Lower values have higher privileges."""

    ADMIN = 0
    TEACHER = 10
    STUDENT = 20


class ExamType(enum.Enum):
    """Kind of assessment an exam row represents."""

    EXAM = "exam"
    QUIZ = "quiz"


class QuestionType(enum.Enum):
    MCQ = "mcq"
    TRUE_FALSE = "true_false"


def generate_exam_identifier() -> str:
    """Short public identifier used to address quizzes without exposing row ids."""
    return secrets.token_hex(5)


# -----------------------------------------------------------------------------
# People
# -----------------------------------------------------------------------------


class User(Base):
    """User model for authentication and authorization."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    _role = Column("role", Integer, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="user", uselist=False)

    @property
    def role(self) -> UserRole:
        return UserRole(self._role)

    @role.setter
    def role(self, value: UserRole | int) -> None:
        self._role = int(value) if isinstance(value, UserRole) else value


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="student")
    exam_attempts = relationship("ExamAttempt", back_populates="student")
    archives = relationship("Archive", back_populates="student")


# -----------------------------------------------------------------------------
# Academic calendar
# -----------------------------------------------------------------------------


class AcademicYear(Base):
    __tablename__ = "academic_years"

    id = Column(Integer, primary_key=True)
    start_year = Column(Date, nullable=False)
    end_year = Column(Date, nullable=False)
    full_tuition = Column(Numeric(10, 2), default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    semesters = relationship("Semester", back_populates="academic_year", cascade="all, delete-orphan")
    archives = relationship("Archive", back_populates="academic_year")


class Semester(Base):
    __tablename__ = "semesters"

    id = Column(Integer, primary_key=True)
    academic_year_id = Column(
        Integer, ForeignKey("academic_years.id", ondelete="CASCADE"), nullable=False, index=True
    )
    semester_name = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    academic_year = relationship("AcademicYear", back_populates="semesters")


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    questions = relationship("Question", back_populates="subject")


# -----------------------------------------------------------------------------
# Exams and questions
# -----------------------------------------------------------------------------


class Exam(Base):
    __tablename__ = "exams"
    __table_args__ = (
        CheckConstraint("total_mark > 0", name="ck_exam_total_mark_positive"),
        CheckConstraint("passing_mark > 0", name="ck_exam_passing_mark_positive"),
    )

    id = Column(Integer, primary_key=True)
    uuid = Column(String(10), unique=True, nullable=False, default=generate_exam_identifier, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    semester_id = Column(Integer, ForeignKey("semesters.id", ondelete="CASCADE"), nullable=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    time_limit = Column(Integer, nullable=False)  # minutes
    total_mark = Column(Integer, nullable=False)
    passing_mark = Column(Integer, nullable=False)
    start_datetime = Column(DateTime, nullable=True)
    end_datetime = Column(DateTime, nullable=True)
    announced = Column(Boolean, default=False, nullable=False)
    exam_type = Column(
        Enum(ExamType, values_callable=lambda e: [m.value for m in e]),
        default=ExamType.EXAM,
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    subject = relationship("Subject")
    exam_questions = relationship("ExamQuestion", back_populates="exam", cascade="all, delete-orphan")
    attempts = relationship("ExamAttempt", back_populates="exam")


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    type = Column(
        Enum(QuestionType, values_callable=lambda e: [m.value for m in e]),
        default=QuestionType.MCQ,
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    subject = relationship("Subject", back_populates="questions")
    options = relationship("Option", back_populates="question", cascade="all, delete-orphan", order_by="Option.id")


class Option(Base):
    __tablename__ = "options"

    id = Column(Integer, primary_key=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)

    question = relationship("Question", back_populates="options")


class ExamQuestion(Base):
    """Per-exam weighting of a reusable question."""

    __tablename__ = "exam_question"
    __table_args__ = (
        UniqueConstraint("exam_id", "question_id", name="uq_exam_question"),
        CheckConstraint("mark >= 0", name="ck_exam_question_mark_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    mark = Column(Integer, nullable=False)

    exam = relationship("Exam", back_populates="exam_questions")
    question = relationship("Question")


# -----------------------------------------------------------------------------
# Attempts and answers
# -----------------------------------------------------------------------------


class ExamAttempt(Base):
    __tablename__ = "exam_attempts"
    __table_args__ = (
        UniqueConstraint("student_id", "exam_id", name="uq_exam_attempt_student_exam"),
        CheckConstraint("score >= 0", name="ck_exam_attempt_score_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    exam = relationship("Exam", back_populates="attempts")
    student = relationship("Student", back_populates="exam_attempts")
    answers = relationship("Answer", back_populates="exam_attempt", cascade="all, delete-orphan")


class Answer(Base):
    __tablename__ = "answers"
    __table_args__ = (
        UniqueConstraint("exam_attempt_id", "question_id", name="uq_answer_attempt_question"),
        CheckConstraint("mark_awarded >= 0", name="ck_answer_mark_awarded_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    exam_attempt_id = Column(
        Integer, ForeignKey("exam_attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    option_id = Column(Integer, ForeignKey("options.id", ondelete="CASCADE"), nullable=True)
    mark_awarded = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    exam_attempt = relationship("ExamAttempt", back_populates="answers")


# -----------------------------------------------------------------------------
# Archive and grade ledger
# -----------------------------------------------------------------------------


class Archive(Base):
    """Per student, per academic year anchor for tuition and grades."""

    __tablename__ = "archives"
    __table_args__ = (UniqueConstraint("student_id", "academic_year_id", name="uq_archive_student_year"),)

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="SET NULL"), nullable=True, index=True)
    academic_year_id = Column(
        Integer, ForeignKey("academic_years.id", ondelete="SET NULL"), nullable=True, index=True
    )
    remaining_tuition = Column(Numeric(10, 2), default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="archives")
    academic_year = relationship("AcademicYear", back_populates="archives")
    grades = relationship("Grade", back_populates="archive")


class Grade(Base):
    """Append-only grade ledger entry."""

    __tablename__ = "grades"
    __table_args__ = (
        CheckConstraint("grade >= 0", name="ck_grade_non_negative"),
        CheckConstraint("min_score >= 0", name="ck_grade_min_score_non_negative"),
        CheckConstraint("max_score >= 0", name="ck_grade_max_score_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    archive_id = Column(Integer, ForeignKey("archives.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    semester_id = Column(Integer, ForeignKey("semesters.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # exam, quiz, worksheet, assignment, ...
    grade = Column(Float, nullable=False)
    min_score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    archive = relationship("Archive", back_populates="grades")
    subject = relationship("Subject")
    semester = relationship("Semester")
