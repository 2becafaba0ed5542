"""Service for student archives and the append-only grade ledger."""
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import AcademicYear, Archive, Grade

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradeEntry:
    archive_id: int
    semester_id: int
    subject_id: int
    type: str
    grade: float
    min_score: float
    max_score: float


class ArchiveLedger:
    async def find_archive(self, session: AsyncSession, student_id: int, academic_year_id: int) -> Archive | None:
        stmt = select(Archive).where(
            Archive.student_id == student_id,
            Archive.academic_year_id == academic_year_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def resolve_archive(self, session: AsyncSession, student_id: int, academic_year: AcademicYear) -> Archive:
        """
        Get or create the student's archive for an academic year.

        A new archive starts with the year's full tuition outstanding. The insert
        runs in a savepoint: if a concurrent request created the archive first,
        only the savepoint is rolled back and the winner's archive is returned.
        """
        academic_year_id = academic_year.id
        archive = await self.find_archive(session, student_id, academic_year_id)
        if archive:
            return archive

        archive = Archive(
            student_id=student_id,
            academic_year_id=academic_year_id,
            remaining_tuition=academic_year.full_tuition or 0,
        )
        try:
            async with session.begin_nested():
                session.add(archive)
        except IntegrityError:
            existing = await self.find_archive(session, student_id, academic_year_id)
            if existing is None:
                raise
            logger.info(
                "Archive created concurrently, reusing it",
                extra={"archive_id": existing.id, "student_id": student_id, "academic_year_id": academic_year_id},
            )
            return existing

        logger.info(
            "Created archive",
            extra={"archive_id": archive.id, "student_id": student_id, "academic_year_id": academic_year_id},
        )
        return archive

    async def append_grade(self, session: AsyncSession, entry: GradeEntry) -> Grade:
        """Insert a new ledger row. Existing grades are never updated or merged."""
        grade = Grade(
            archive_id=entry.archive_id,
            semester_id=entry.semester_id,
            subject_id=entry.subject_id,
            type=entry.type,
            grade=entry.grade,
            min_score=entry.min_score,
            max_score=entry.max_score,
        )
        session.add(grade)
        await session.flush()
        return grade
