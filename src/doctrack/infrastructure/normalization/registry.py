"""Registry: select normalizer by magic bytes, MIME type or URL suffix."""

from collections.abc import Callable
from pathlib import PurePosixPath
from urllib.parse import urlsplit

from doctrack.application.dto.content import FetchedContent, NormalizedContent
from doctrack.domain.exceptions import NormalizationError
from doctrack.infrastructure.normalization.pdf_normalizer import PDF_MAGIC, normalize_pdf
from doctrack.infrastructure.normalization.text_normalizer import normalize_text

# extension (lower) -> normalize function
_NORMALIZERS_BY_EXT: dict[str, Callable[[bytes], NormalizedContent]] = {
    "pdf": normalize_pdf,
    "txt": normalize_text,
    "md": normalize_text,
}

_MIME_TO_EXT: dict[str, str] = {
    "application/pdf": "pdf",
    "application/x-pdf": "pdf",
    "text/plain": "txt",
    "text/markdown": "md",
}


def _ext_for_url(url: str | None) -> str | None:
    if not url:
        return None
    suffix = PurePosixPath(urlsplit(url).path).suffix
    return suffix.lstrip(".").lower() or None


def get_normalizer(
    data: bytes,
    content_type: str | None = None,
    url: str | None = None,
) -> Callable[[bytes], NormalizedContent] | None:
    """Return normalize function for the content or None.

    PDF magic bytes win over a mislabelled Content-Type; servers often send
    PDFs as application/octet-stream.
    """
    if data.lstrip()[:5] == PDF_MAGIC:
        return normalize_pdf
    if content_type:
        mime = content_type.split(";")[0].strip().lower()
        ext = _MIME_TO_EXT.get(mime)
        if ext:
            return _NORMALIZERS_BY_EXT[ext]
    ext = _ext_for_url(url)
    if ext:
        return _NORMALIZERS_BY_EXT.get(ext)
    return None


def normalize_content(content: FetchedContent, url: str | None = None) -> NormalizedContent:
    """Select normalizer, run it, return NormalizedContent.

    Raises NormalizationError if no normalizer fits or parsing failed.
    """
    url = content.final_url or url
    normalizer = get_normalizer(content.data, content.content_type, url)
    if not normalizer:
        kind = content.content_type or _ext_for_url(url) or "unknown"
        raise NormalizationError(f"No normalizer for content type: {kind}")
    return normalizer(content.data)


def supported_extensions() -> list[str]:
    """Return list of supported file extensions."""
    return sorted(_NORMALIZERS_BY_EXT.keys())
