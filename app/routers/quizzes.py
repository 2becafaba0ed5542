"""Public quiz endpoints addressed by the quiz identifier."""
from fastapi import APIRouter, HTTPException, status

from app.core.errors import GradingError
from app.dependencies.database import DBSessionDep
from app.dependencies.grading import ExamAssemblyDep, GradingServiceDep
from app.schemas.grading import (
    QuizDataResponse,
    QuizOptionResponse,
    QuizQuestionResponse,
    QuizSubmission,
    QuizSubmitResponse,
)

router = APIRouter(prefix="/exams/quiz", tags=["quizzes"])


@router.get("/{quiz_id}/data", response_model=QuizDataResponse)
async def get_quiz_data(
    quiz_id: str,
    session: DBSessionDep,
    exam_assembly: ExamAssemblyDep,
) -> QuizDataResponse:
    """Get the quiz paper without correct answers."""
    try:
        quiz = await exam_assembly.load_quiz_with_questions(session, quiz_id)
    except GradingError as e:
        raise e.to_http()

    return QuizDataResponse(
        quiz_id=quiz.uuid,
        title=quiz.title,
        time_limit=quiz.time_limit,
        total_mark=quiz.total_mark,
        passing_mark=quiz.passing_mark,
        questions=[
            QuizQuestionResponse(
                question_id=question.question_id,
                question_text=question.question_text,
                type=question.type,
                mark=question.mark,
                options=[QuizOptionResponse(option_id=o.option_id, text=o.text) for o in question.options],
            )
            for question in quiz.questions
        ],
    )


@router.post("/{quiz_id}/submit", response_model=QuizSubmitResponse)
async def submit_quiz(
    quiz_id: str,
    submission: QuizSubmission,
    session: DBSessionDep,
    grading: GradingServiceDep,
) -> QuizSubmitResponse:
    """Grade a quiz submission once and record the result."""
    try:
        outcome = await grading.submit_quiz(
            session, quiz_id, submission.email, submission.answers, password=submission.password
        )
    except GradingError as e:
        raise e.to_http()
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to submit quiz due to server error.", "code": "SUBMIT_QUIZ_ERROR"},
        )

    return QuizSubmitResponse.model_validate(outcome.quiz_response())
