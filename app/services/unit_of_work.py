"""Transaction scope for multi-step grading writes."""
from types import TracebackType

from sqlalchemy.ext.asyncio import AsyncSession


class UnitOfWork:
    """
    Wraps one request's AsyncSession as a single all-or-nothing transaction.

    Nothing is persisted unless ``commit()`` is called. Leaving the context
    without a commit, or through an exception, rolls everything back.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.committed = False

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None or not self.committed:
            await self.rollback()

    async def flush(self) -> None:
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()
        self.committed = True

    async def rollback(self) -> None:
        if self.session.in_transaction():
            await self.session.rollback()
