"""Student lookup used by the grading and scorecard flows."""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Student, User


class StudentDirectory:
    async def find_by_email(self, session: AsyncSession, email: str) -> Student | None:
        stmt = (
            select(Student)
            .join(User, Student.user_id == User.id)
            .where(func.lower(User.email) == email.strip().lower())
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_user_id(self, session: AsyncSession, user_id: int) -> Student | None:
        stmt = select(Student).where(Student.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_user_by_email(self, session: AsyncSession, email: str) -> User | None:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
