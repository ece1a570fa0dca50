"""Document DTOs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from doctrack.domain.entities import Document


@dataclass
class IngestInput:
    """Input for ingesting a document discovered at a URL."""

    url: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class DocumentOutput:
    """Output DTO for document."""

    id: UUID
    url: str
    title: str
    processing_status: str
    content_hash: str | None
    organization: str | None
    published_at: datetime | None
    markdown_content: str | None
    baseline_summary: str | None
    extracted_topics: list[str]
    extracted_entities: dict[str, Any]
    duplicate_of: UUID | None
    times_referenced: int
    metadata: dict[str, Any]
    processed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, document: Document) -> "DocumentOutput":
        return cls(
            id=document.id,
            url=document.url,
            title=document.title,
            processing_status=str(document.processing_status),
            content_hash=document.content_hash,
            organization=document.organization,
            published_at=document.published_at,
            markdown_content=document.markdown_content,
            baseline_summary=document.baseline_summary,
            extracted_topics=list(document.extracted_topics),
            extracted_entities=dict(document.extracted_entities),
            duplicate_of=document.duplicate_of,
            times_referenced=document.times_referenced,
            metadata=dict(document.metadata),
            processed_at=document.processed_at,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )
