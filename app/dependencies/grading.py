"""Service dependencies for the grading routers."""
from typing import Annotated

from fastapi import Depends

from app.services.academic_calendar import AcademicCalendar
from app.services.archive_ledger import ArchiveLedger
from app.services.attempt_ledger import AttemptLedger
from app.services.exam_assembly import ExamAssembly
from app.services.grading import GradingService
from app.services.scorecard import ScorecardAggregator
from app.services.students import StudentDirectory


def get_grading_service() -> GradingService:
    return GradingService()


def get_exam_assembly() -> ExamAssembly:
    return ExamAssembly()


def get_attempt_ledger() -> AttemptLedger:
    return AttemptLedger()


def get_archive_ledger() -> ArchiveLedger:
    return ArchiveLedger()


def get_scorecard_aggregator() -> ScorecardAggregator:
    return ScorecardAggregator()


def get_academic_calendar() -> AcademicCalendar:
    return AcademicCalendar()


def get_student_directory() -> StudentDirectory:
    return StudentDirectory()


GradingServiceDep = Annotated[GradingService, Depends(get_grading_service)]
ExamAssemblyDep = Annotated[ExamAssembly, Depends(get_exam_assembly)]
AttemptLedgerDep = Annotated[AttemptLedger, Depends(get_attempt_ledger)]
ArchiveLedgerDep = Annotated[ArchiveLedger, Depends(get_archive_ledger)]
ScorecardAggregatorDep = Annotated[ScorecardAggregator, Depends(get_scorecard_aggregator)]
AcademicCalendarDep = Annotated[AcademicCalendar, Depends(get_academic_calendar)]
StudentDirectoryDep = Annotated[StudentDirectory, Depends(get_student_directory)]
