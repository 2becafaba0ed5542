"""Exam attempt endpoints, including exam grading."""
from fastapi import APIRouter, HTTPException, Query, status

from app.core.errors import GradingError
from app.dependencies.auth import CurrentUserDep, StaffDep
from app.dependencies.database import DBSessionDep
from app.dependencies.grading import AttemptLedgerDep, GradingServiceDep, StudentDirectoryDep
from app.models import UserRole
from app.schemas.grading import ExamAttemptResponse, ExamSubmission, GradeExamResponse

router = APIRouter(prefix="/exam-attempts", tags=["exam-attempts"])


@router.post("/check", response_model=GradeExamResponse)
async def grade_exam(
    submission: ExamSubmission,
    session: DBSessionDep,
    current_user: CurrentUserDep,
    grading: GradingServiceDep,
) -> GradeExamResponse:
    """Grade a student's exam submission once and record the result."""
    if (
        current_user.role == UserRole.STUDENT
        and submission.email is not None
        and submission.email.lower() != current_user.email.lower()
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Students can only submit their own exams", "code": "FORBIDDEN"},
        )

    try:
        outcome = await grading.grade_exam(session, submission.exam_id, submission.email, submission.answers)
    except GradingError as e:
        raise e.to_http()
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to grade exam due to server error.", "code": "GRADE_EXAM_ERROR"},
        )

    return GradeExamResponse.model_validate(outcome.exam_response())


@router.get("", response_model=list[ExamAttemptResponse])
async def list_exam_attempts(
    session: DBSessionDep,
    current_user: StaffDep,
    attempts: AttemptLedgerDep,
    exam_id: int | None = Query(None, description="Only attempts for this exam"),
) -> list[ExamAttemptResponse]:
    """List exam attempts (staff only)."""
    rows = await attempts.list_attempts(session, exam_id=exam_id)
    return [ExamAttemptResponse.model_validate(row) for row in rows]


@router.get("/{attempt_id}", response_model=ExamAttemptResponse)
async def get_exam_attempt(
    attempt_id: int,
    session: DBSessionDep,
    current_user: CurrentUserDep,
    attempts: AttemptLedgerDep,
    students: StudentDirectoryDep,
) -> ExamAttemptResponse:
    """Get one attempt. Students may only read their own."""
    attempt = await attempts.get_attempt(session, attempt_id)
    if attempt is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Exam Attempt not found.", "code": "EXAM_ATTEMPT_NOT_FOUND"},
        )

    if current_user.role == UserRole.STUDENT:
        student = await students.find_by_user_id(session, current_user.id)
        if student is None or student.id != attempt.student_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Exam Attempt not found.", "code": "EXAM_ATTEMPT_NOT_FOUND"},
            )

    return ExamAttemptResponse.model_validate(attempt)
