import asyncio
import logging

from livestreams.db.base import async_engine
from livestreams.db.init_db import init_db

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def init() -> None:
    await init_db(async_engine)
    await async_engine.dispose()


def main() -> None:
    logger.info("Creating database tables")
    asyncio.run(init())
    logger.info("Database tables created")


if __name__ == "__main__":
    main()
