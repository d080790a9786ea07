from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payments_log.infrastructure.repositories import PaymentEventRepository


class UnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self):
        async with self._session_factory() as session:
            try:
                yield _UnitOfWorkImplementation(session)
                # Rollback if commit wasn't explicitly called
                await session.rollback()
            except Exception:
                await session.rollback()
                raise


class _UnitOfWorkImplementation:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._payment_event_repo = PaymentEventRepository(session)

    @property
    def payment_events(self) -> PaymentEventRepository:
        return self._payment_event_repo

    async def begin(self):
        if not self._session.in_transaction():
            await self._session.begin()

    async def commit(self):
        await self._session.commit()

    async def rollback(self):
        await self._session.rollback()
