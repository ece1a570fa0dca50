"""Helpers for caller-supplied document metadata."""

import json
from datetime import UTC, datetime
from typing import Any
from urllib.parse import unquote, urlsplit

from doctrack.domain.exceptions import ValidationError

UNTITLED = "Untitled Document"


def validate_url(url: str | None) -> str:
    """Return stripped url; raise ValidationError unless it is absolute http(s)."""
    url = (url or "").strip()
    if not url:
        raise ValidationError("url is required")
    parts = urlsplit(url)
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise ValidationError(f"url must be an absolute http(s) URL: {url}")
    return url


def title_from_url(url: str) -> str:
    """Derive a readable title from the last path segment of url."""
    segment = unquote(urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1])
    if segment.lower().endswith(".pdf"):
        segment = segment[:-4]
    title = " ".join(segment.replace("_", " ").replace("-", " ").split())
    return title or UNTITLED


def coerce_datetime(value: Any) -> datetime | None:
    """Accept datetime or ISO 8601 string; anything else yields None."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


def metadata_str(metadata: dict[str, Any], key: str) -> str | None:
    value = metadata.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def published_at_from(metadata: dict[str, Any]) -> datetime | None:
    return coerce_datetime(metadata.get("published_at", metadata.get("publishedAt")))


def jsonable(metadata: dict[str, Any]) -> dict[str, Any]:
    """Copy of metadata that survives a JSONB round trip (dates become strings)."""
    return json.loads(json.dumps(metadata, default=str))
