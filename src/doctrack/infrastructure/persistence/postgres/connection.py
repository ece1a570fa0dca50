"""PostgreSQL async connection pool."""

from psycopg_pool import AsyncConnectionPool


def create_pool(
    conninfo: str,
    min_size: int = 2,
    max_size: int = 10,
    timeout: float = 30.0,
) -> AsyncConnectionPool:
    """Create the document store pool, not yet opened.

    Caller must ``await pool.open()`` before use: PoolLifespanMiddleware
    does it for the API, ingest_once for the CLI. Connections are checked
    on checkout so a restarted database does not fail the next ingestion.
    """
    return AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        timeout=timeout,
        name="doctrack",
        check=AsyncConnectionPool.check_connection,
        open=False,
    )
