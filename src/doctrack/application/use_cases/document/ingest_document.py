"""Ingest document use case: fetch, fingerprint, deduplicate, analyze, persist."""

import asyncio
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog

from doctrack.application.dto.content import AnalysisResult, NormalizedContent
from doctrack.application.dto.document_dto import DocumentOutput, IngestInput
from doctrack.application.ports import (
    ContentFetcher,
    ContentNormalizer,
    DocumentAnalyzer,
    IngestionLocks,
    UnitOfWorkFactory,
)
from doctrack.application.use_cases.document.metadata import (
    jsonable,
    metadata_str,
    published_at_from,
    title_from_url,
    validate_url,
)
from doctrack.domain.entities import Document
from doctrack.domain.exceptions import (
    ConsistencyViolation,
    IngestionTimeoutError,
    NotFound,
    ProcessingFailed,
)
from doctrack.domain.value_objects import ContentHash, ProcessingStatus

logger = structlog.get_logger(__name__)

DEFAULT_SUMMARY_CHARS = 300


def default_analysis(markdown: str) -> AnalysisResult:
    """Analysis used when the analyzer is unavailable: leading text, no topics."""
    summary = markdown[:DEFAULT_SUMMARY_CHARS]
    if len(markdown) > DEFAULT_SUMMARY_CHARS:
        summary += "..."
    return AnalysisResult(summary=summary, topics=[], entities={})


class IngestDocumentUseCase:
    """Ingest a discovered URL exactly once and return its canonical document.

    Per url the sequence create, fetch, hash, normalize, analyze, complete runs
    for one caller only. Other callers either reuse the completed record
    (bumping ``times_referenced``) or wait for the in-flight one. Exclusion
    across processes comes from the store: the unique url insert and
    compare-and-set status transitions. The lock registry only keeps one
    process from doing the same work twice and wakes its waiters early.
    """

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        fetcher: ContentFetcher,
        normalizer: ContentNormalizer,
        analyzer: DocumentAnalyzer,
        locks: IngestionLocks,
        poll_interval: float = 2.0,
        max_wait: float = 60.0,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._fetcher = fetcher
        self._normalizer = normalizer
        self._analyzer = analyzer
        self._locks = locks
        self._poll_interval = poll_interval
        self._max_wait = max_wait

    async def execute(self, input_data: IngestInput) -> DocumentOutput:
        """Ingest url; the result is always a completed, canonical document."""
        url = validate_url(input_data.url)
        metadata = dict(input_data.metadata or {})
        log = logger.bind(url=url)

        document, created = await self._find_or_create(url, metadata)
        if created:
            log.info("document_created", document_id=str(document.id))
            return await self.process(document)

        status = document.processing_status
        log = log.bind(document_id=str(document.id), status=str(status))
        if status == ProcessingStatus.COMPLETED:
            return await self._reference(document)
        if status == ProcessingStatus.DUPLICATE:
            return await self._reference(await self._load_canonical(document))
        if status in (ProcessingStatus.FAILED, ProcessingStatus.PENDING):
            claimed = await self._claim(document, expected=status)
            if claimed is not None:
                log.info("document_retry")
                return await self.process(claimed)
            log.info("document_retry_claimed_elsewhere")

        log.info("document_in_flight")
        return await self._reference(await self._wait_for_completion(document.id))

    async def process(self, document: Document) -> DocumentOutput:
        """Run fetch through finalize for a document this caller has claimed.

        The document must already be in ``processing`` on behalf of this
        caller. On any error it is marked ``failed`` and the error propagates.
        """
        if not self._locks.try_acquire(document.id):
            logger.info("document_locked_in_process", document_id=str(document.id))
            return await self._reference(await self._wait_for_completion(document.id))
        try:
            return await self._run_pipeline(document)
        except BaseException as e:
            await self._mark_failed(document.id, e)
            raise
        finally:
            self._locks.release(document.id)

    async def _run_pipeline(self, document: Document) -> DocumentOutput:
        log = logger.bind(url=document.url, document_id=str(document.id))

        log.info("document_fetch_started")
        fetched = await self._fetcher.fetch(document.url)
        content_hash = ContentHash.of(fetched.data).value

        async with self._uow_factory() as uow:
            canonical = await uow.documents.find_completed_by_content_hash(
                content_hash, exclude_id=document.id
            )
        if canonical is not None:
            return await self._mark_duplicate(document, canonical, content_hash)

        normalized = self._normalizer(fetched, document.url)
        log.info(
            "document_normalized",
            content_hash=content_hash,
            markdown_length=len(normalized.markdown),
            page_count=normalized.page_count,
        )

        fields = self._completion_fields(document, normalized, content_hash)
        analysis = await self._analyze(
            normalized.markdown,
            {
                "title": fields.get("title", document.title),
                "organization": document.organization,
                "url": document.url,
            },
        )
        fields.update(
            baseline_summary=analysis.summary,
            extracted_topics=analysis.topics,
            extracted_entities=analysis.entities,
            processed_at=datetime.now(UTC),
        )

        async with self._uow_factory() as uow:
            completed = await uow.documents.update_status(
                document.id,
                ProcessingStatus.COMPLETED,
                fields,
                expected_status=ProcessingStatus.PROCESSING,
            )
        if completed is None:
            raise ConsistencyViolation(
                f"Document {document.id} left processing while this caller held it"
            )
        log.info("document_completed", topics=len(completed.extracted_topics))
        return DocumentOutput.from_entity(completed)

    def _completion_fields(
        self, document: Document, normalized: NormalizedContent, content_hash: str
    ) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "content_hash": content_hash,
            "markdown_content": normalized.markdown,
        }
        # Caller-supplied title wins; otherwise prefer the one embedded in the file.
        if "title" not in document.metadata and normalized.title:
            fields["title"] = normalized.title
        if document.published_at is None and normalized.published_at is not None:
            fields["published_at"] = normalized.published_at
        return fields

    async def _analyze(self, markdown: str, hints: dict[str, Any]) -> AnalysisResult:
        """Best effort: any analyzer failure falls back to default_analysis."""
        try:
            return await self._analyzer.analyze(markdown, hints)
        except Exception as e:
            logger.warning(
                "analysis_failed",
                url=hints.get("url"),
                error=str(e),
                error_type=type(e).__name__,
            )
            return default_analysis(markdown)

    async def _mark_duplicate(
        self, document: Document, canonical: Document, content_hash: str
    ) -> DocumentOutput:
        async with self._uow_factory() as uow:
            marked = await uow.documents.update_status(
                document.id,
                ProcessingStatus.DUPLICATE,
                {"duplicate_of": canonical.id, "content_hash": content_hash},
                expected_status=ProcessingStatus.PROCESSING,
            )
            if marked is None:
                raise ConsistencyViolation(
                    f"Document {document.id} left processing while this caller held it"
                )
            count = await uow.documents.increment_reference_count(canonical.id)
        logger.info(
            "duplicate_content_detected",
            url=document.url,
            document_id=str(document.id),
            canonical_id=str(canonical.id),
            canonical_url=canonical.url,
        )
        return DocumentOutput.from_entity(replace(canonical, times_referenced=count))

    async def _find_or_create(
        self, url: str, metadata: dict[str, Any]
    ) -> tuple[Document, bool]:
        async with self._uow_factory() as uow:
            existing = await uow.documents.find_by_url(url)
        if existing is not None:
            return existing, False

        now = datetime.now(UTC)
        document = Document(
            id=uuid4(),
            url=url,
            title=metadata_str(metadata, "title") or title_from_url(url),
            processing_status=ProcessingStatus.PROCESSING,
            created_at=now,
            updated_at=now,
            organization=metadata_str(metadata, "organization"),
            published_at=published_at_from(metadata),
            metadata=jsonable(metadata),
        )
        async with self._uow_factory() as uow:
            return await uow.documents.create_if_absent(document)

    async def _claim(self, document: Document, expected: ProcessingStatus) -> Document | None:
        """Compare-and-set expected -> processing. None if another caller won."""
        async with self._uow_factory() as uow:
            return await uow.documents.update_status(
                document.id,
                ProcessingStatus.PROCESSING,
                expected_status=expected,
            )

    async def _reference(self, document: Document) -> DocumentOutput:
        """Count a reuse of a completed document and return it."""
        async with self._uow_factory() as uow:
            count = await uow.documents.increment_reference_count(document.id)
        logger.info(
            "document_reused",
            url=document.url,
            document_id=str(document.id),
            times_referenced=count,
        )
        return DocumentOutput.from_entity(replace(document, times_referenced=count))

    async def _load_canonical(self, duplicate: Document) -> Document:
        """Resolve a duplicate to the completed document it points at."""
        if duplicate.duplicate_of is None:
            raise self._violation(duplicate, "duplicate without duplicate_of")
        async with self._uow_factory() as uow:
            canonical = await uow.documents.get_by_id(duplicate.duplicate_of)
        if canonical is None:
            raise self._violation(duplicate, "duplicate_of points to a missing document")
        if canonical.processing_status != ProcessingStatus.COMPLETED:
            raise self._violation(
                duplicate, f"duplicate_of points to a {canonical.processing_status} document"
            )
        if canonical.content_hash != duplicate.content_hash:
            raise self._violation(duplicate, "duplicate_of points to different content")
        return canonical

    @staticmethod
    def _violation(document: Document, detail: str) -> ConsistencyViolation:
        logger.error(
            "consistency_violation",
            document_id=str(document.id),
            duplicate_of=str(document.duplicate_of),
            detail=detail,
        )
        return ConsistencyViolation(f"Document {document.id}: {detail}")

    async def _wait_for_completion(self, document_id: UUID) -> Document:
        """Wait for another caller's ingestion of document_id to finish.

        Woken by the lock registry when the work runs in this process,
        otherwise re-reads the store every poll interval.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._max_wait
        while True:
            async with self._uow_factory() as uow:
                document = await uow.documents.get_by_id(document_id)
            if document is None:
                raise NotFound("Document", str(document_id))
            status = document.processing_status
            if status == ProcessingStatus.COMPLETED:
                return document
            if status == ProcessingStatus.DUPLICATE:
                return await self._load_canonical(document)
            if status == ProcessingStatus.FAILED:
                raise ProcessingFailed(f"Processing of {document.url} failed")

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning(
                    "document_wait_timeout",
                    document_id=str(document_id),
                    waited_seconds=self._max_wait,
                )
                raise IngestionTimeoutError(
                    f"Timed out after {self._max_wait}s waiting for {document.url}"
                )
            await self._locks.wait_for_release(
                document_id, min(self._poll_interval, remaining)
            )

    async def _mark_failed(self, document_id: UUID, error: BaseException) -> None:
        logger.error(
            "document_processing_failed",
            document_id=str(document_id),
            error=str(error),
            error_type=type(error).__name__,
        )
        try:
            async with self._uow_factory() as uow:
                await uow.documents.update_status(
                    document_id,
                    ProcessingStatus.FAILED,
                    expected_status=ProcessingStatus.PROCESSING,
                )
        except Exception:
            # The original error is what the caller needs; the row stays in processing.
            logger.exception("document_mark_failed_error", document_id=str(document_id))
