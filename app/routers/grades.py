"""Grade ledger endpoints for grades entered by staff."""
import logging

from fastapi import APIRouter, HTTPException, status

from app.core.errors import StudentNotFoundError
from app.dependencies.auth import StaffDep
from app.dependencies.database import DBSessionDep
from app.dependencies.grading import ArchiveLedgerDep
from app.models import AcademicYear, Semester, Student, Subject
from app.schemas.grades import GradeCreate, GradeResponse
from app.services.archive_ledger import GradeEntry
from app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/grades", tags=["grades"])


@router.post("", response_model=GradeResponse, status_code=status.HTTP_201_CREATED)
async def create_grade(
    grade_data: GradeCreate,
    session: DBSessionDep,
    current_user: StaffDep,
    archives: ArchiveLedgerDep,
) -> GradeResponse:
    """
    Append a grade to the student's archive for the semester's academic year.

    The archive is created on first use. Existing grades are never merged.
    """
    student = await session.get(Student, grade_data.student_id)
    if student is None:
        raise StudentNotFoundError().to_http()

    subject = await session.get(Subject, grade_data.subject_id)
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Subject not found", "code": "SUBJECT_NOT_FOUND"},
        )

    semester = await session.get(Semester, grade_data.semester_id)
    academic_year = await session.get(AcademicYear, semester.academic_year_id) if semester else None
    if semester is None or academic_year is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Semester not found", "code": "SEMESTER_NOT_FOUND"},
        )

    async with UnitOfWork(session) as uow:
        archive = await archives.resolve_archive(session, student.id, academic_year)
        grade = await archives.append_grade(
            session,
            GradeEntry(
                archive_id=archive.id,
                semester_id=semester.id,
                subject_id=subject.id,
                type=grade_data.type,
                grade=grade_data.grade,
                min_score=grade_data.min_score,
                max_score=grade_data.max_score,
            ),
        )
        await uow.commit()

    logger.info(
        "Grade recorded",
        extra={"grade_id": grade.id, "archive_id": archive.id, "type": grade.type, "recorded_by": current_user.id},
    )
    return GradeResponse.model_validate(grade)
