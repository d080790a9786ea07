from typing import Callable

from dependency_injector import containers, providers
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from payments_log.infrastructure.order_source import HttpOrderSource
from payments_log.infrastructure.unit_of_work import UnitOfWork


def build_async_engine(dsn: str, pool_size: int = 5, pool_recycle: int = 1800) -> AsyncEngine:
    url = make_url(dsn)
    # sqlite drivers pick their own pool class which takes no sizing arguments
    if url.get_backend_name() == "sqlite":
        return create_async_engine(url)
    return create_async_engine(url, pool_size=pool_size, pool_recycle=pool_recycle)


class InfrastructureContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    async_engine = providers.Singleton[AsyncEngine](
        build_async_engine,
        config.db.dsn,
        pool_size=config.db.pool_size,
        pool_recycle=config.db.pool_recycle,
    )
    session_factory: Callable[..., AsyncSession] = providers.Factory(
        sessionmaker, async_engine, expire_on_commit=False, class_=AsyncSession
    )
    unit_of_work = providers.Singleton[UnitOfWork](
        UnitOfWork, session_factory=session_factory
    )
    order_source = providers.Singleton[HttpOrderSource](
        HttpOrderSource,
        base_url=config.order_source.base_url,
        timeout=config.order_source.timeout.as_float(),
        auth_token=config.order_source.auth_token,
    )
