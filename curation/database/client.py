"""Engine lifecycle: startup check, schema creation, health check, shutdown."""

import time
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from curation.core.exceptions import DatabaseError
from curation.database import models  # noqa: F401  (registers tables)
from curation.database.base import Base, engine
from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DatabaseClient:
    """Wraps the async engine for the application lifespan and /health."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def ping(self) -> float:
        """Round-trip a trivial query; returns latency in milliseconds."""
        started = time.perf_counter()
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return (time.perf_counter() - started) * 1000

    async def create_tables(self) -> None:
        """Create missing tables, including the event outbox. Existing tables are left alone."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        LOGGER.info(f"Schema verified ({len(Base.metadata.tables)} tables)")

    async def health_check(self) -> Dict[str, Any]:
        try:
            latency_ms = await self.ping()
        except (SQLAlchemyError, OSError) as e:
            LOGGER.error(f"Database health check failed: {e}")
            return {"status": "unhealthy", "connected": False, "error": str(e)}
        return {"status": "healthy", "connected": True, "latency_ms": round(latency_ms, 2)}

    async def dispose(self) -> None:
        await self.engine.dispose()


db_client = DatabaseClient(engine)


async def init_database(auto_migrate: bool = True) -> None:
    """Fail fast if the database is unreachable, then create the schema when asked."""
    try:
        latency_ms = await db_client.ping()
        LOGGER.info(f"Database reachable ({latency_ms:.1f} ms)")
        if auto_migrate:
            await db_client.create_tables()
    except (SQLAlchemyError, OSError) as e:
        raise DatabaseError(f"Database initialization failed: {e}", original_error=e)


async def close_database() -> None:
    await db_client.dispose()
    LOGGER.info("Database connections closed")
