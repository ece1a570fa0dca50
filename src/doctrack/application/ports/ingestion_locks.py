"""Ingestion lock registry port."""

from typing import Protocol
from uuid import UUID


class IngestionLocks(Protocol):
    """Per-document exclusive locks with release notification.

    Scoped to one process. Cross-process exclusion comes from the document
    store (unique url, compare-and-set status transitions).
    """

    def try_acquire(self, document_id: UUID) -> bool: ...

    def release(self, document_id: UUID) -> None: ...

    def is_held(self, document_id: UUID) -> bool: ...

    async def wait_for_release(self, document_id: UUID, timeout: float) -> bool:
        """Wait until the lock is released or timeout elapses. True if released."""
        ...
