"""Archive scorecard endpoints."""
from fastapi import APIRouter, HTTPException, status

from app.core.errors import GradingError, StudentNotFoundError
from app.dependencies.auth import CurrentUserDep, StaffDep
from app.dependencies.database import DBSessionDep
from app.dependencies.grading import (
    AcademicCalendarDep,
    ArchiveLedgerDep,
    ScorecardAggregatorDep,
    StudentDirectoryDep,
)
from app.models import Archive
from app.schemas.scorecard import SemesterScorecard

router = APIRouter(prefix="/archive", tags=["archive"])


@router.get("/scorecard", response_model=list[SemesterScorecard])
async def get_my_scorecard(
    session: DBSessionDep,
    current_user: CurrentUserDep,
    students: StudentDirectoryDep,
    calendar: AcademicCalendarDep,
    archives: ArchiveLedgerDep,
    aggregator: ScorecardAggregatorDep,
) -> list[SemesterScorecard]:
    """Scorecard of the calling student for the current academic year."""
    try:
        student = await students.find_by_user_id(session, current_user.id)
        if student is None:
            raise StudentNotFoundError("Student record not found for this user")
        academic_year = await calendar.current_academic_year(session)
    except GradingError as e:
        raise e.to_http()

    archive = await archives.find_archive(session, student.id, academic_year.id)
    if archive is None:
        # No archive yet means nothing has been graded this year
        return []

    scorecard = await aggregator.build_scorecard(session, archive.id)
    return [SemesterScorecard.model_validate(semester) for semester in scorecard]


@router.get("/{archive_id}/scorecard", response_model=list[SemesterScorecard])
async def get_archive_scorecard(
    archive_id: int,
    session: DBSessionDep,
    current_user: StaffDep,
    aggregator: ScorecardAggregatorDep,
) -> list[SemesterScorecard]:
    """Scorecard of any archive (staff only)."""
    archive = await session.get(Archive, archive_id)
    if archive is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Archive not found", "code": "ARCHIVE_NOT_FOUND"},
        )

    scorecard = await aggregator.build_scorecard(session, archive.id)
    return [SemesterScorecard.model_validate(semester) for semester in scorecard]
