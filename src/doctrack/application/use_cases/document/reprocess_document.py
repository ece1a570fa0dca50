"""Reprocess document use case."""

from datetime import UTC, datetime
from uuid import UUID

import structlog

from doctrack.application.dto.document_dto import DocumentOutput, IngestInput
from doctrack.application.ports import DocumentAnalyzer, IngestionLocks, UnitOfWorkFactory
from doctrack.application.use_cases.document.ingest_document import IngestDocumentUseCase
from doctrack.domain.exceptions import NotFound, ValidationError
from doctrack.domain.value_objects import ProcessingStatus

logger = structlog.get_logger(__name__)


class ReprocessDocumentUseCase:
    """Explicit reprocessing request for an existing document.

    A completed document keeps its status and content; only its analysis is
    regenerated from the stored markdown, so duplicates that point at it stay
    valid. Here analysis is mandatory: AnalysisError propagates and the
    previous analysis is kept. A failed document is retried through the
    normal ingestion path.
    """

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        ingest_document: IngestDocumentUseCase,
        analyzer: DocumentAnalyzer,
        locks: IngestionLocks,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._ingest_document = ingest_document
        self._analyzer = analyzer
        self._locks = locks

    async def execute(self, document_id: UUID) -> DocumentOutput:
        async with self._uow_factory() as uow:
            document = await uow.documents.get_by_id(document_id)
        if not document:
            raise NotFound("Document", str(document_id))

        status = document.processing_status
        if status == ProcessingStatus.DUPLICATE:
            raise ValidationError(
                f"Document {document_id} is a duplicate of {document.duplicate_of}; "
                "reprocess the canonical document instead"
            )
        if status == ProcessingStatus.PROCESSING:
            raise ValidationError(f"Document {document_id} is already being processed")
        if status in (ProcessingStatus.FAILED, ProcessingStatus.PENDING):
            return await self._ingest_document.execute(
                IngestInput(url=document.url, metadata=document.metadata)
            )

        if not self._locks.try_acquire(document.id):
            raise ValidationError(f"Document {document_id} is already being processed")
        try:
            analysis = await self._analyzer.analyze(
                document.markdown_content or "",
                {
                    "title": document.title,
                    "organization": document.organization,
                    "url": document.url,
                },
            )
            async with self._uow_factory() as uow:
                updated = await uow.documents.update_status(
                    document.id,
                    ProcessingStatus.COMPLETED,
                    {
                        "baseline_summary": analysis.summary,
                        "extracted_topics": analysis.topics,
                        "extracted_entities": analysis.entities,
                        "processed_at": datetime.now(UTC),
                    },
                    expected_status=ProcessingStatus.COMPLETED,
                )
        finally:
            self._locks.release(document.id)

        if updated is None:
            raise ValidationError(f"Document {document_id} changed while being reprocessed")
        logger.info(
            "document_reanalyzed",
            document_id=str(document.id),
            topics=len(updated.extracted_topics),
        )
        return DocumentOutput.from_entity(updated)
