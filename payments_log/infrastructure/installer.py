import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from payments_log.infrastructure.db_schema import metadata

logger = logging.getLogger(__name__)


async def install(engine: AsyncEngine) -> None:
    """Create the payments log table unless it already exists.

    Existing tables are left untouched, there is no migration path for
    column changes.
    """
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all, checkfirst=True)
    logger.info("Payments log schema installed")
