"""Document entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from doctrack.domain.value_objects import ProcessingStatus


@dataclass
class Document:
    """Canonical, deduplicated record of one unique piece of content.

    One row per distinct ``url``. ``content_hash`` identifies byte-identical
    content reachable through different URLs; a document whose bytes match an
    already completed one is stored with status ``duplicate`` and points at
    the canonical record through ``duplicate_of``.
    """

    id: UUID
    url: str
    title: str
    processing_status: ProcessingStatus
    created_at: datetime
    updated_at: datetime
    content_hash: str | None = None
    organization: str | None = None
    published_at: datetime | None = None
    markdown_content: str | None = None
    baseline_summary: str | None = None
    extracted_topics: list[str] = field(default_factory=list)
    extracted_entities: dict[str, Any] = field(default_factory=dict)
    duplicate_of: UUID | None = None
    times_referenced: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    processed_at: datetime | None = None
