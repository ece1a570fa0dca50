"""PostgreSQL Unit of Work implementation."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg
from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool

from doctrack.application.ports import UnitOfWorkFactory
from doctrack.domain.exceptions import StoreError
from doctrack.infrastructure.persistence.postgres.document_repository import (
    PostgresDocumentRepository,
)


class PostgresUnitOfWork:
    """One pooled connection, one transaction, the document repository on top.

    Ingestion opens a fresh unit of work per state transition so that other
    callers see ``processing``, ``failed`` and ``completed`` as soon as each
    one is committed.
    """

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn
        self.documents = PostgresDocumentRepository(conn)

    async def commit(self) -> None:
        await self._conn.commit()

    async def rollback(self) -> None:
        await self._conn.rollback()


def create_uow_factory(pool: AsyncConnectionPool) -> UnitOfWorkFactory:
    """Create UnitOfWork factory (async context manager).

    Any psycopg error, including a pool timeout on checkout, leaves the
    factory as StoreError.
    """

    @asynccontextmanager
    async def factory() -> AsyncIterator[PostgresUnitOfWork]:
        try:
            async with pool.connection() as conn:
                uow = PostgresUnitOfWork(conn)
                try:
                    yield uow
                except BaseException:
                    await uow.rollback()
                    raise
                await uow.commit()
        except psycopg.Error as e:
            raise StoreError(f"Document store error: {e}") from e

    return factory
