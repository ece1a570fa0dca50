"""Fixtures for API tests."""

import falcon.asgi
import pytest
from falcon.testing import TestClient

from doctrack.application.use_cases.document.get_document import GetDocumentUseCase
from doctrack.application.use_cases.document.reprocess_document import (
    ReprocessDocumentUseCase,
)
from doctrack.interfaces.api.resources.documents import (
    DocumentReprocessResource,
    DocumentResource,
    DocumentsBatchResource,
    DocumentsResource,
)
from doctrack.interfaces.api.resources.health import HealthResource


@pytest.fixture
def app(uow_factory, make_ingest, mock_analyzer, locks) -> falcon.asgi.App:
    """Falcon app over the in-memory store; routes match create_doctrack_app."""
    ingest_document = make_ingest(max_wait=0.2)
    reprocess_document = ReprocessDocumentUseCase(
        unit_of_work_factory=uow_factory,
        ingest_document=ingest_document,
        analyzer=mock_analyzer,
        locks=locks,
    )
    app = falcon.asgi.App()
    health = HealthResource()
    app.add_route("/v1/health", health)
    app.add_route("/v1/health/ready", health, suffix="ready")
    app.add_route("/v1/documents", DocumentsResource(ingest_document))
    app.add_route("/v1/documents/batch", DocumentsBatchResource(ingest_document))
    app.add_route("/v1/documents/{document_id}", DocumentResource(GetDocumentUseCase(uow_factory)))
    app.add_route(
        "/v1/documents/{document_id}/reprocess",
        DocumentReprocessResource(reprocess_document),
    )
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
