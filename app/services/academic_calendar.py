"""Resolution of the current academic year and semester."""
from collections.abc import Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NoAcademicYearError, SemesterNotFoundError
from app.models import AcademicYear, Semester


def pick_current_academic_year(years: Sequence[AcademicYear], today: date) -> AcademicYear | None:
    """
    Pick the academic year covering ``today``.

    Falls back to the most recent year by start date when none covers it.
    Returns None only when ``years`` is empty.
    """
    covering = [year for year in years if year.start_year <= today <= year.end_year]
    if covering:
        return max(covering, key=lambda year: year.start_year)
    if not years:
        return None
    return max(years, key=lambda year: year.start_year)


def pick_semester(semesters: Sequence[Semester], today: date) -> Semester | None:
    """
    Pick the semester covering ``today``.

    Otherwise the latest semester that has already started, otherwise the
    earliest one.
    """
    if not semesters:
        return None
    for semester in semesters:
        if semester.start_date <= today <= semester.end_date:
            return semester
    started = [semester for semester in semesters if semester.start_date <= today]
    if started:
        return max(started, key=lambda semester: semester.start_date)
    return min(semesters, key=lambda semester: semester.start_date)


class AcademicCalendar:
    async def current_academic_year(self, session: AsyncSession, today: date | None = None) -> AcademicYear:
        """
        Raises:
            NoAcademicYearError: If no academic year exists at all
        """
        result = await session.execute(select(AcademicYear))
        year = pick_current_academic_year(result.scalars().all(), today or date.today())
        if year is None:
            raise NoAcademicYearError()
        return year

    async def semester_for(self, session: AsyncSession, academic_year: AcademicYear, today: date | None = None) -> Semester:
        """
        Raises:
            SemesterNotFoundError: If the academic year has no semesters
        """
        stmt = select(Semester).where(Semester.academic_year_id == academic_year.id).order_by(Semester.start_date)
        result = await session.execute(stmt)
        semester = pick_semester(result.scalars().all(), today or date.today())
        if semester is None:
            raise SemesterNotFoundError(academic_year.id)
        return semester
