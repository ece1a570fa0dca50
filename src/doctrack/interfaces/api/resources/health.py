"""Health check endpoints."""

import falcon.asgi
import structlog
from psycopg_pool import AsyncConnectionPool

logger = structlog.get_logger(__name__)


class HealthResource:
    """Health and readiness endpoints."""

    def __init__(self, pool: AsyncConnectionPool | None = None) -> None:
        self._pool = pool

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """GET /v1/health - liveness."""
        resp.media = {"status": "ok"}
        resp.status = falcon.HTTP_200

    async def on_get_ready(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """GET /v1/health/ready - readiness (DB)."""
        if self._pool is not None:
            try:
                async with self._pool.connection(timeout=5.0) as conn:
                    await conn.execute("SELECT 1")
            except Exception as e:
                logger.warning("readiness_check_failed", error=str(e))
                resp.media = {"status": "unavailable", "database": "down"}
                resp.status = falcon.HTTP_503
                return
        resp.media = {"status": "ready"}
        resp.status = falcon.HTTP_200
