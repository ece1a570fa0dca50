"""Content fingerprint for deduplication."""

import hashlib
import re
from dataclasses import dataclass

_SHA256_HEX = re.compile(r"[0-9a-f]{64}")


@dataclass(frozen=True)
class ContentHash:
    """SHA-256 hex digest of raw document bytes."""

    value: str

    def __post_init__(self) -> None:
        if not _SHA256_HEX.fullmatch(self.value):
            raise ValueError("SHA-256 hash must be 64 lowercase hex characters")

    @classmethod
    def of(cls, data: bytes) -> "ContentHash":
        """Fingerprint raw bytes."""
        return cls(hashlib.sha256(data).hexdigest())

    def __str__(self) -> str:
        return self.value
