import asyncio
import logging
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core import models  # noqa: F401  (registers tables on Base.metadata)
from app.core.config import settings
from app.core.logging import configure_logging
from app.db.session import Base, engine

logger = logging.getLogger(__name__)


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """
    Ensure every table of the data model exists in the connected database.
    Missing tables are created in dependency order; existing ones are left untouched.
    Returns the names of the tables that were created.
    """
    async with db_engine.begin() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
        missing = [table.name for table in Base.metadata.sorted_tables if table.name not in existing]
        await conn.run_sync(Base.metadata.create_all)

    if missing:
        logger.info("Created missing tables: %s", ", ".join(missing))
    else:
        logger.info("All required tables already exist in the database.")
    return missing


async def main() -> None:
    configure_logging(settings.log_level)
    await ensure_tables(engine)


if __name__ == "__main__":
    asyncio.run(main())
