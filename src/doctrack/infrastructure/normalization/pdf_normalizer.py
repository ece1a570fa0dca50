"""Normalizer for PDF."""

import io
from datetime import UTC, datetime

from pypdf import PdfReader

from doctrack.application.dto.content import NormalizedContent
from doctrack.domain.exceptions import NormalizationError
from doctrack.infrastructure.normalization.cleanup import clean_text, with_header

PDF_MAGIC = b"%PDF-"


def _parse_pdf_date(value: str | None) -> datetime | None:
    """Convert PDF date string (D:YYYYMMDDHHmmSS...) to a UTC datetime."""
    if not value:
        return None
    s = value[2:] if value.startswith("D:") else value
    s = s.strip()
    digits = ""
    for ch in s:
        if not ch.isdigit():
            break
        digits += ch
    if len(digits) < 8:
        return None
    parts = [digits[0:4], digits[4:6], digits[6:8], digits[8:10], digits[10:12], digits[12:14]]
    y, m, d, hh, mm, ss = (int(p) if p else 0 for p in parts)
    try:
        return datetime(y, m or 1, d or 1, hh, mm, ss, tzinfo=UTC)
    except ValueError:
        return None


def _meta_str(reader: PdfReader, key: str) -> str | None:
    meta = reader.metadata
    if not meta or key not in meta or meta[key] is None:
        return None
    value = str(meta[key]).strip()
    return value or None


def normalize_pdf(data: bytes) -> NormalizedContent:
    """Extract text from PDF bytes and render it as markdown."""
    try:
        reader = PdfReader(io.BytesIO(data))
        parts: list[str] = []
        for page in reader.pages:
            t = page.extract_text()
            if t:
                parts.append(t)
    except Exception as e:
        raise NormalizationError(f"Invalid or corrupted PDF: {e}") from e

    title = _meta_str(reader, "/Title")
    author = _meta_str(reader, "/Author")
    body = clean_text("\n\n".join(parts))
    return NormalizedContent(
        markdown=with_header(body, title, author),
        title=title,
        author=author,
        published_at=_parse_pdf_date(_meta_str(reader, "/CreationDate")),
        page_count=len(reader.pages),
    )
