"""Document repository port."""

from typing import Any, Protocol
from uuid import UUID

from doctrack.domain.entities import Document
from doctrack.domain.value_objects import ProcessingStatus


class DocumentRepository(Protocol):
    """Port for document persistence.

    Every mutation is a single-row atomic statement. ``create_if_absent``
    relies on the unique constraint on ``url``; it never checks then inserts.
    """

    async def get_by_id(self, document_id: UUID) -> Document | None: ...

    async def find_by_url(self, url: str) -> Document | None: ...

    async def find_completed_by_content_hash(
        self, content_hash: str, exclude_id: UUID | None = None
    ) -> Document | None: ...

    async def create_if_absent(self, document: Document) -> tuple[Document, bool]:
        """Insert document unless its url exists. Returns (stored row, created)."""
        ...

    async def update_status(
        self,
        document_id: UUID,
        status: ProcessingStatus,
        fields: dict[str, Any] | None = None,
        *,
        expected_status: ProcessingStatus | None = None,
    ) -> Document | None:
        """Set status and fields. With expected_status, only if the row is still in it.

        Returns the updated document, or None when the row is missing or the
        compare-and-set lost.
        """
        ...

    async def increment_reference_count(self, document_id: UUID) -> int: ...
