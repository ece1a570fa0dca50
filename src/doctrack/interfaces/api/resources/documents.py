"""Document API resources."""

from typing import Any
from uuid import UUID

import falcon.asgi
import structlog

from doctrack.application.dto.document_dto import DocumentOutput, IngestInput
from doctrack.application.use_cases.document.get_document import GetDocumentUseCase
from doctrack.application.use_cases.document.ingest_document import IngestDocumentUseCase
from doctrack.application.use_cases.document.reprocess_document import (
    ReprocessDocumentUseCase,
)
from doctrack.domain.exceptions import (
    AnalysisError,
    ConsistencyViolation,
    DocTrackError,
    FetchError,
    IngestionTimeoutError,
    NormalizationError,
    NotFound,
    ProcessingFailed,
    StoreError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

MAX_BATCH_SIZE = 100

# Most specific first: IngestionTimeoutError is also a DocTrackError.
_ERROR_STATUS: list[tuple[type[DocTrackError], str]] = [
    (ValidationError, falcon.HTTP_400),
    (NotFound, falcon.HTTP_404),
    (ProcessingFailed, falcon.HTTP_409),
    (NormalizationError, falcon.HTTP_422),
    (FetchError, falcon.HTTP_502),
    (AnalysisError, falcon.HTTP_502),
    (IngestionTimeoutError, falcon.HTTP_504),
    (StoreError, falcon.HTTP_503),
    (ConsistencyViolation, falcon.HTTP_500),
]


def _status_for(error: DocTrackError) -> str:
    for error_type, status in _ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return falcon.HTTP_500


def _parse_ingest_item(item: Any) -> IngestInput:
    if not isinstance(item, dict):
        raise ValidationError("Each item must be an object")
    url = item.get("url")
    if not isinstance(url, str):
        raise ValidationError("url is required")
    metadata = item.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValidationError("metadata must be an object")
    return IngestInput(url=url, metadata=metadata)


class DocumentsResource:
    """POST /v1/documents - ingest one discovered URL."""

    def __init__(self, ingest_document: IngestDocumentUseCase) -> None:
        self._ingest_document = ingest_document

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """Ingest document; respond with its canonical record."""
        try:
            body = await req.get_media()
            input_data = _parse_ingest_item(body)
        except (falcon.MediaNotFoundError, falcon.MediaMalformedError) as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": f"Invalid request body: {e.description}"}
            return
        except ValidationError as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": str(e)}
            return

        try:
            result = await self._ingest_document.execute(input_data)
        except DocTrackError as e:
            resp.status = _status_for(e)
            resp.media = {"error": str(e), "type": type(e).__name__}
            return
        resp.media = document_to_dict(result)
        resp.status = falcon.HTTP_200


class DocumentsBatchResource:
    """POST /v1/documents/batch - ingest many URLs; failures stay per item."""

    def __init__(self, ingest_document: IngestDocumentUseCase) -> None:
        self._ingest_document = ingest_document

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        try:
            body = await req.get_media()
        except (falcon.MediaNotFoundError, falcon.MediaMalformedError) as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": f"Invalid request body: {e.description}"}
            return
        items = body.get("items") if isinstance(body, dict) else None
        if not isinstance(items, list) or not items:
            resp.status = falcon.HTTP_400
            resp.media = {"error": "items must be a non-empty list"}
            return
        if len(items) > MAX_BATCH_SIZE:
            resp.status = falcon.HTTP_400
            resp.media = {"error": f"At most {MAX_BATCH_SIZE} items per batch"}
            return

        documents: list[dict] = []
        errors: list[dict] = []
        for index, item in enumerate(items):
            url = item.get("url") if isinstance(item, dict) else None
            try:
                result = await self._ingest_document.execute(_parse_ingest_item(item))
                documents.append(document_to_dict(result))
            except DocTrackError as e:
                logger.warning("batch_item_failed", index=index, url=url, error=str(e))
                errors.append({"index": index, "url": url, "error": str(e), "type": type(e).__name__})
        resp.media = {"documents": documents, "errors": errors}
        resp.status = falcon.HTTP_200


class DocumentResource:
    """GET /v1/documents/{id} - get document."""

    def __init__(self, get_document: GetDocumentUseCase) -> None:
        self._get_document = get_document

    async def on_get(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        document_id: str,
    ) -> None:
        """Get document by id."""
        try:
            doc_id = UUID(document_id)
        except ValueError:
            resp.status = falcon.HTTP_400
            resp.media = {"error": "Invalid UUID"}
            return

        try:
            result = await self._get_document.execute(doc_id)
        except NotFound:
            resp.status = falcon.HTTP_404
            resp.media = {"error": "Document not found"}
            return
        except DocTrackError as e:
            resp.status = _status_for(e)
            resp.media = {"error": str(e), "type": type(e).__name__}
            return
        resp.media = document_to_dict(result)
        resp.status = falcon.HTTP_200


class DocumentReprocessResource:
    """POST /v1/documents/{id}/reprocess - regenerate analysis or retry a failed document."""

    def __init__(self, reprocess_document: ReprocessDocumentUseCase) -> None:
        self._reprocess_document = reprocess_document

    async def on_post(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        document_id: str,
    ) -> None:
        try:
            doc_id = UUID(document_id)
        except ValueError:
            resp.status = falcon.HTTP_400
            resp.media = {"error": "Invalid UUID"}
            return

        try:
            result = await self._reprocess_document.execute(doc_id)
        except DocTrackError as e:
            resp.status = _status_for(e)
            resp.media = {"error": str(e), "type": type(e).__name__}
            return
        resp.media = document_to_dict(result)
        resp.status = falcon.HTTP_200


def document_to_dict(d: DocumentOutput) -> dict:
    return {
        "id": str(d.id),
        "url": d.url,
        "title": d.title,
        "processing_status": d.processing_status,
        "content_hash": d.content_hash,
        "organization": d.organization,
        "published_at": d.published_at.isoformat() if d.published_at else None,
        "markdown_content": d.markdown_content,
        "baseline_summary": d.baseline_summary,
        "extracted_topics": d.extracted_topics,
        "extracted_entities": d.extracted_entities,
        "duplicate_of": str(d.duplicate_of) if d.duplicate_of else None,
        "times_referenced": d.times_referenced,
        "metadata": d.metadata,
        "processed_at": d.processed_at.isoformat() if d.processed_at else None,
        "created_at": d.created_at.isoformat(),
        "updated_at": d.updated_at.isoformat(),
    }
