"""Document processing status."""

from enum import StrEnum


class ProcessingStatus(StrEnum):
    """States of the document ingestion state machine."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    DUPLICATE = "duplicate"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.COMPLETED, ProcessingStatus.DUPLICATE)
