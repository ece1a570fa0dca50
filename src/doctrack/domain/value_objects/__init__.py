"""Domain value objects."""

from doctrack.domain.value_objects.content_hash import ContentHash
from doctrack.domain.value_objects.processing_status import ProcessingStatus

__all__ = [
    "ContentHash",
    "ProcessingStatus",
]
