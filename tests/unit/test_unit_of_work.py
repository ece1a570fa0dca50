"""Unit tests for the PostgreSQL unit of work factory against a fake pool."""

from contextlib import asynccontextmanager

import psycopg
import pytest
from psycopg_pool import PoolTimeout

from doctrack.application.dto.document_dto import IngestInput
from doctrack.domain.exceptions import DocTrackError, StoreError
from doctrack.infrastructure.persistence.postgres.unit_of_work import create_uow_factory


class FakeConnection:
    def __init__(self, error: Exception | None = None) -> None:
        self._error = error
        self.committed = False
        self.rolled_back = False

    async def execute(self, query: str, params: tuple = ()):
        if self._error is not None:
            raise self._error
        raise AssertionError("unexpected query")

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True


class FakePool:
    def __init__(self, conn: FakeConnection | None = None, checkout_error: Exception | None = None) -> None:
        self.conn = conn or FakeConnection()
        self._checkout_error = checkout_error

    @asynccontextmanager
    async def connection(self, timeout: float | None = None):
        if self._checkout_error is not None:
            raise self._checkout_error
        yield self.conn


@pytest.mark.asyncio
async def test_commits_on_clean_exit() -> None:
    pool = FakePool()

    async with create_uow_factory(pool)() as uow:
        assert uow.documents is not None

    assert pool.conn.committed is True
    assert pool.conn.rolled_back is False


@pytest.mark.asyncio
async def test_rolls_back_and_reraises_domain_errors() -> None:
    pool = FakePool()

    with pytest.raises(ValueError):
        async with create_uow_factory(pool)():
            raise ValueError("boom")

    assert pool.conn.rolled_back is True
    assert pool.conn.committed is False


@pytest.mark.asyncio
async def test_statement_failure_becomes_store_error() -> None:
    error = psycopg.OperationalError("server closed the connection unexpectedly")
    pool = FakePool(FakeConnection(error))

    with pytest.raises(StoreError, match="server closed the connection") as exc_info:
        async with create_uow_factory(pool)() as uow:
            await uow.documents.find_by_url("https://bis.org/report.pdf")

    assert exc_info.value.__cause__ is error
    assert pool.conn.rolled_back is True


@pytest.mark.asyncio
async def test_pool_timeout_becomes_store_error() -> None:
    pool = FakePool(checkout_error=PoolTimeout("couldn't get a connection after 30.00 sec"))

    with pytest.raises(StoreError, match="couldn't get a connection"):
        async with create_uow_factory(pool)():
            pass


@pytest.mark.asyncio
async def test_ingest_surfaces_store_error(make_ingest, fetcher) -> None:
    """Ingestion over an unreachable store raises a typed error before fetching."""
    pool = FakePool(FakeConnection(psycopg.OperationalError("connection refused")))
    use_case = make_ingest(unit_of_work_factory=create_uow_factory(pool))

    with pytest.raises(StoreError) as exc_info:
        await use_case.execute(IngestInput(url="https://bis.org/report.pdf"))

    assert isinstance(exc_info.value, DocTrackError)
    assert isinstance(exc_info.value.__cause__, psycopg.OperationalError)
    assert fetcher.calls == []
