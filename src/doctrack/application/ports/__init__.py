"""Application ports - interfaces for external adapters."""

from doctrack.application.ports.content_fetcher import ContentFetcher
from doctrack.application.ports.content_normalizer import ContentNormalizer
from doctrack.application.ports.document_analyzer import DocumentAnalyzer
from doctrack.application.ports.ingestion_locks import IngestionLocks
from doctrack.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "ContentFetcher",
    "ContentNormalizer",
    "DocumentAnalyzer",
    "IngestionLocks",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
