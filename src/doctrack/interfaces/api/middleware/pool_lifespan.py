"""ASGI lifespan hooks for the document store pool."""

from typing import Any

import structlog
from psycopg_pool import AsyncConnectionPool

logger = structlog.get_logger(__name__)


class PoolLifespanMiddleware:
    """Open the pool before the first request; close it on shutdown.

    Startup fails when the database cannot be reached within
    ``open_timeout`` seconds, so a broken deployment never serves requests.
    """

    def __init__(self, pool: AsyncConnectionPool, open_timeout: float = 30.0) -> None:
        self._pool = pool
        self._open_timeout = open_timeout

    async def process_startup(self, scope: dict[str, Any], event: dict[str, Any]) -> None:
        await self._pool.open(wait=True, timeout=self._open_timeout)
        logger.info(
            "database_pool_opened",
            pool=self._pool.name,
            min_size=self._pool.min_size,
            max_size=self._pool.max_size,
        )

    async def process_shutdown(self, scope: dict[str, Any], event: dict[str, Any]) -> None:
        await self._pool.close()
        logger.info("database_pool_closed", pool=self._pool.name)
