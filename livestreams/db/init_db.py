import logging

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel

# Register every table on SQLModel.metadata
from livestreams.models.streams import Stream  # noqa: F401
from livestreams.models.users import User  # noqa: F401

logger = logging.getLogger(__name__)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info(
        "Database tables ensured: %s", ", ".join(sorted(SQLModel.metadata.tables))
    )
