"""Normalizer for plain text and markdown."""

from doctrack.application.dto.content import NormalizedContent
from doctrack.infrastructure.normalization.cleanup import clean_text


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        try:
            return data.decode("cp1252")
        except UnicodeDecodeError:
            return data.decode("utf-8", errors="replace")


def normalize_text(data: bytes) -> NormalizedContent:
    """Treat as text. Markdown is kept as-is apart from whitespace cleanup."""
    text = clean_text(_decode(data).lstrip("\ufeff"))
    title = None
    first_line = text.split("\n", 1)[0]
    if first_line.startswith("# "):
        title = first_line[2:].strip() or None
    return NormalizedContent(
        markdown=text,
        title=title,
    )
