"""Domain entities."""

from doctrack.domain.entities.document import Document

__all__ = [
    "Document",
]
