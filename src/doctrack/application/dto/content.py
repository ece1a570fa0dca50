"""Fetched and normalized content DTOs."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class FetchedContent:
    """Raw bytes retrieved for a URL."""

    data: bytes
    content_type: str | None = None
    final_url: str | None = None


@dataclass(frozen=True)
class NormalizedContent:
    """Markdown form of fetched bytes plus metadata embedded in them.

    The fingerprint is not part of it: ingestion hashes the raw bytes with
    ContentHash.of before normalizing, so content duplicates skip parsing.
    """

    markdown: str
    title: str | None = None
    author: str | None = None
    published_at: datetime | None = None
    page_count: int | None = None


@dataclass
class AnalysisResult:
    """Structured output of the analysis collaborator."""

    summary: str
    topics: list[str] = field(default_factory=list)
    entities: dict[str, list[str]] = field(default_factory=dict)
