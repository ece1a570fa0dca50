"""Application entry point and composition root."""

import argparse
import asyncio
import json
import sys

import falcon
import falcon.asgi
import structlog

from doctrack import __version__
from doctrack.application.dto.document_dto import IngestInput
from doctrack.application.ports import UnitOfWorkFactory
from doctrack.application.use_cases.document.get_document import GetDocumentUseCase
from doctrack.application.use_cases.document.ingest_document import IngestDocumentUseCase
from doctrack.application.use_cases.document.reprocess_document import (
    ReprocessDocumentUseCase,
)
from doctrack.config import Settings, get_settings
from doctrack.domain.exceptions import DocTrackError
from doctrack.infrastructure.analysis.openai_analyzer import OpenAIDocumentAnalyzer
from doctrack.infrastructure.fetching.http_fetcher import HttpContentFetcher
from doctrack.infrastructure.locking.in_process_locks import InProcessIngestionLocks
from doctrack.infrastructure.normalization import normalize_content
from doctrack.infrastructure.persistence.postgres.connection import create_pool
from doctrack.infrastructure.persistence.postgres.unit_of_work import (
    create_uow_factory,
)
from doctrack.interfaces.api.middleware.pool_lifespan import PoolLifespanMiddleware
from doctrack.interfaces.api.resources.documents import (
    DocumentReprocessResource,
    DocumentResource,
    DocumentsBatchResource,
    DocumentsResource,
    document_to_dict,
)
from doctrack.interfaces.api.resources.health import HealthResource
from doctrack.logging_config import configure_logging

logger = structlog.get_logger(__name__)


def build_use_cases(
    settings: Settings, uow_factory: UnitOfWorkFactory
) -> tuple[IngestDocumentUseCase, ReprocessDocumentUseCase, GetDocumentUseCase]:
    """Wire collaborators into the document use cases."""
    locks = InProcessIngestionLocks()
    analyzer = OpenAIDocumentAnalyzer(
        base_url=settings.analysis_api_url,
        api_key=settings.analysis_api_key,
        model=settings.analysis_model,
        max_chars=settings.analysis_max_chars,
        timeout=settings.analysis_timeout_seconds,
    )
    if not settings.analysis_api_key:
        logger.warning("analysis_api_key_missing", detail="documents complete with default analysis")
    fetcher = HttpContentFetcher(
        timeout=settings.fetch_timeout_seconds,
        user_agent=settings.fetch_user_agent,
        max_bytes=settings.fetch_max_bytes,
    )
    ingest_document = IngestDocumentUseCase(
        unit_of_work_factory=uow_factory,
        fetcher=fetcher,
        normalizer=normalize_content,
        analyzer=analyzer,
        locks=locks,
        poll_interval=settings.wait_poll_interval_seconds,
        max_wait=settings.wait_max_seconds,
    )
    reprocess_document = ReprocessDocumentUseCase(
        unit_of_work_factory=uow_factory,
        ingest_document=ingest_document,
        analyzer=analyzer,
        locks=locks,
    )
    get_document = GetDocumentUseCase(unit_of_work_factory=uow_factory)
    return ingest_document, reprocess_document, get_document


def create_doctrack_app(settings: Settings | None = None) -> falcon.asgi.App:
    """Composition root - build Falcon app with all dependencies."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.json_logs)
    pool = create_pool(
        settings.database_url,
        min_size=settings.database_pool_min_size,
        max_size=settings.database_pool_max_size,
    )
    uow_factory = create_uow_factory(pool)
    ingest_document, reprocess_document, get_document = build_use_cases(settings, uow_factory)

    app = falcon.asgi.App(middleware=[PoolLifespanMiddleware(pool)])

    async def log_exception(req, resp, ex, params):
        logger.exception("unhandled_error", method=req.method, path=req.path)
        resp.status = falcon.HTTP_500
        resp.media = {"title": "500 Internal Server Error"}

    app.add_error_handler(Exception, log_exception)

    health_resource = HealthResource(pool)
    app.add_route("/v1/health", health_resource)
    app.add_route("/v1/health/ready", health_resource, suffix="ready")
    app.add_route("/v1/documents", DocumentsResource(ingest_document))
    app.add_route("/v1/documents/batch", DocumentsBatchResource(ingest_document))
    app.add_route("/v1/documents/{document_id}", DocumentResource(get_document))
    app.add_route(
        "/v1/documents/{document_id}/reprocess",
        DocumentReprocessResource(reprocess_document),
    )
    return app


async def ingest_once(settings: Settings, url: str, metadata: dict) -> dict:
    """Ingest a single URL outside the API (own pool, closed afterwards)."""
    pool = create_pool(settings.database_url, min_size=1, max_size=2)
    await pool.open(wait=True)
    try:
        ingest_document, _, _ = build_use_cases(settings, create_uow_factory(pool))
        result = await ingest_document.execute(IngestInput(url=url, metadata=metadata))
    finally:
        await pool.close()
    return document_to_dict(result)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="doctrack", description="Document ingestion service")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("version", help="Print version")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    ingest = sub.add_parser("ingest", help="Ingest one document URL")
    ingest.add_argument("url")
    ingest.add_argument("--title")
    ingest.add_argument("--organization")
    ingest.add_argument("--published-at", dest="published_at")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = _build_parser().parse_args(argv)

    if args.command == "version":
        print(f"doctrack v{__version__}")
        return 0

    settings = get_settings()
    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            create_doctrack_app(settings),
            host=args.host or settings.host,
            port=args.port or settings.port,
        )
        return 0

    configure_logging(settings.log_level, settings.json_logs)
    metadata = {
        k: v
        for k, v in (
            ("title", args.title),
            ("organization", args.organization),
            ("published_at", args.published_at),
        )
        if v
    }
    try:
        document = asyncio.run(ingest_once(settings, args.url, metadata))
    except DocTrackError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    print(json.dumps(document, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
