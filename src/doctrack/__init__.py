"""doctrack - document ingestion with URL and content deduplication."""

__version__ = "0.1.0"
