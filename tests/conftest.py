"""Pytest fixtures for doctrack tests."""

from __future__ import annotations

import asyncio
import copy
import io
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from doctrack.application.dto.content import AnalysisResult, FetchedContent
from doctrack.application.use_cases.document.ingest_document import IngestDocumentUseCase
from doctrack.domain.entities import Document
from doctrack.domain.exceptions import NotFound
from doctrack.domain.value_objects import ProcessingStatus
from doctrack.infrastructure.locking.in_process_locks import InProcessIngestionLocks
from doctrack.infrastructure.normalization import normalize_content


# --- Fake repositories ---


class FakeDocumentRepository:
    """In-memory document repository.

    Returns copies so callers cannot mutate stored rows, and yields to the
    event loop on every call so concurrent tasks interleave like real I/O.
    """

    def __init__(self) -> None:
        self._by_id: dict[UUID, Document] = {}

    @property
    def rows(self) -> list[Document]:
        return [copy.deepcopy(d) for d in self._by_id.values()]

    def add(self, document: Document) -> Document:
        """Helper to seed a row for tests."""
        self._by_id[document.id] = copy.deepcopy(document)
        return document

    async def get_by_id(self, document_id: UUID) -> Document | None:
        await asyncio.sleep(0)
        doc = self._by_id.get(document_id)
        return copy.deepcopy(doc) if doc else None

    async def find_by_url(self, url: str) -> Document | None:
        await asyncio.sleep(0)
        for doc in self._by_id.values():
            if doc.url == url:
                return copy.deepcopy(doc)
        return None

    async def find_completed_by_content_hash(
        self, content_hash: str, exclude_id: UUID | None = None
    ) -> Document | None:
        await asyncio.sleep(0)
        matches = [
            d
            for d in self._by_id.values()
            if d.content_hash == content_hash
            and d.processing_status == ProcessingStatus.COMPLETED
            and d.id != exclude_id
        ]
        matches.sort(key=lambda d: (d.created_at, d.id))
        return copy.deepcopy(matches[0]) if matches else None

    async def create_if_absent(self, document: Document) -> tuple[Document, bool]:
        await asyncio.sleep(0)
        for doc in self._by_id.values():
            if doc.url == document.url:
                return copy.deepcopy(doc), False
        self._by_id[document.id] = copy.deepcopy(document)
        return copy.deepcopy(document), True

    async def update_status(
        self,
        document_id: UUID,
        status: ProcessingStatus,
        fields: dict[str, Any] | None = None,
        *,
        expected_status: ProcessingStatus | None = None,
    ) -> Document | None:
        await asyncio.sleep(0)
        doc = self._by_id.get(document_id)
        if doc is None:
            return None
        if expected_status is not None and doc.processing_status != expected_status:
            return None
        for key, value in (fields or {}).items():
            setattr(doc, key, copy.deepcopy(value))
        doc.processing_status = status
        doc.updated_at = datetime.now(UTC)
        return copy.deepcopy(doc)

    async def increment_reference_count(self, document_id: UUID) -> int:
        await asyncio.sleep(0)
        doc = self._by_id.get(document_id)
        if doc is None:
            raise NotFound("Document", str(document_id))
        doc.times_referenced += 1
        return doc.times_referenced


# --- Fake UnitOfWork ---


class FakeUnitOfWork:
    """In-memory Unit of Work with fake repositories."""

    def __init__(self, documents: FakeDocumentRepository | None = None) -> None:
        self.documents = documents or FakeDocumentRepository()

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass


def make_uow_factory(documents: FakeDocumentRepository):
    """Factory whose units of work all share one in-memory store."""

    @asynccontextmanager
    async def _factory() -> AsyncIterator[FakeUnitOfWork]:
        yield FakeUnitOfWork(documents)

    return _factory


# --- Collaborator fakes ---


class FakeFetcher:
    """Fetcher returning canned content per URL; records every call.

    A value may be bytes, FetchedContent, an exception instance, or a list of
    those consumed one per call. Set ``gate`` to hold fetches until released.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None

    async def fetch(self, url: str) -> FetchedContent:
        self.calls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        value = self.responses[url]
        if isinstance(value, list):
            value = value.pop(0)
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, FetchedContent):
            return value
        return FetchedContent(data=value, content_type="text/plain", final_url=url)


def text_bytes(body: str) -> bytes:
    return body.encode("utf-8")


def pdf_bytes(title: str | None = None, author: str | None = None, created: str | None = None) -> bytes:
    """Create minimal valid PDF in memory, optionally with metadata."""
    from pypdf import PdfWriter

    w = PdfWriter()
    w.add_blank_page(width=72, height=72)
    meta = {}
    if title:
        meta["/Title"] = title
    if author:
        meta["/Author"] = author
    if created:
        meta["/CreationDate"] = created
    if meta:
        w.add_metadata(meta)
    buf = io.BytesIO()
    w.write(buf)
    return buf.getvalue()


def make_document(**overrides: Any) -> Document:
    """Document with sensible defaults for seeding the fake store."""
    from uuid import uuid4

    now = datetime.now(UTC)
    values: dict[str, Any] = {
        "id": uuid4(),
        "url": "https://example.org/doc.pdf",
        "title": "doc",
        "processing_status": ProcessingStatus.COMPLETED,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Document(**values)


# --- Fixtures ---


@pytest.fixture
def documents() -> FakeDocumentRepository:
    """Shared in-memory document store for one test."""
    return FakeDocumentRepository()


@pytest.fixture
def uow_factory(documents: FakeDocumentRepository):
    """Factory returning async context manager with FakeUnitOfWork over the shared store."""
    return make_uow_factory(documents)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def mock_analyzer():
    """AsyncMock for DocumentAnalyzer - returns a fixed analysis."""

    async def _analyze(text: str, hints: dict) -> AnalysisResult:
        return AnalysisResult(
            summary=f"Summary of {hints.get('title')}",
            topics=["tokenization", "stablecoins"],
            entities={"companies": ["BIS"]},
        )

    mock = AsyncMock()
    mock.analyze = AsyncMock(side_effect=_analyze)
    return mock


@pytest.fixture
def failing_analyzer():
    """AsyncMock for DocumentAnalyzer that always raises."""
    mock = AsyncMock()
    mock.analyze = AsyncMock(side_effect=RuntimeError("analysis service down"))
    return mock


@pytest.fixture
def locks() -> InProcessIngestionLocks:
    return InProcessIngestionLocks()


@pytest.fixture
def make_ingest(uow_factory, fetcher, mock_analyzer, locks):
    """Build IngestDocumentUseCase with fast polling; override any collaborator."""

    def _make(**overrides: Any) -> IngestDocumentUseCase:
        params: dict[str, Any] = {
            "unit_of_work_factory": uow_factory,
            "fetcher": fetcher,
            "normalizer": normalize_content,
            "analyzer": mock_analyzer,
            "locks": locks,
            "poll_interval": 0.01,
            "max_wait": 2.0,
        }
        params.update(overrides)
        return IngestDocumentUseCase(**params)

    return _make
