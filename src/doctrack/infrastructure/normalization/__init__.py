"""Content normalizers: raw bytes to markdown plus content fingerprint."""

from doctrack.infrastructure.normalization.registry import (
    normalize_content,
    supported_extensions,
)

__all__ = ["normalize_content", "supported_extensions"]
