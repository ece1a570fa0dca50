"""Unit tests for content normalizers."""

from datetime import UTC, datetime

import pytest

from doctrack.application.dto.content import FetchedContent
from doctrack.domain.exceptions import NormalizationError
from doctrack.infrastructure.normalization import normalize_content, supported_extensions
from doctrack.infrastructure.normalization.cleanup import clean_text, with_header
from doctrack.infrastructure.normalization.pdf_normalizer import _parse_pdf_date, normalize_pdf
from doctrack.infrastructure.normalization.registry import get_normalizer
from doctrack.infrastructure.normalization.text_normalizer import normalize_text

from tests.conftest import pdf_bytes


class TestCleanup:
    def test_line_endings_and_blank_runs(self) -> None:
        assert clean_text("a\r\nb\r\n\r\n\r\n\r\nc  \n") == "a\nb\n\nc"

    def test_header_with_author(self) -> None:
        assert with_header("body", "Title", "BIS") == "# Title\n\n**Author:** BIS\n\nbody"

    def test_header_without_title(self) -> None:
        assert with_header("body", None) == "# Document\n\nbody"


class TestParsePdfDate:
    def test_full(self) -> None:
        assert _parse_pdf_date("D:20250629143000+02'00'") == datetime(2025, 6, 29, 14, 30, tzinfo=UTC)

    def test_date_only(self) -> None:
        assert _parse_pdf_date("D:20250629") == datetime(2025, 6, 29, tzinfo=UTC)

    def test_without_prefix(self) -> None:
        assert _parse_pdf_date("20240101120000") == datetime(2024, 1, 1, 12, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "D:2025", "D:20251340", "not a date"])
    def test_invalid(self, value) -> None:
        assert _parse_pdf_date(value) is None


class TestPdfNormalizer:
    def test_metadata_extracted(self) -> None:
        data = pdf_bytes(title="Annual Report", author="BIS", created="D:20250629120000Z")
        result = normalize_pdf(data)
        assert result.title == "Annual Report"
        assert result.author == "BIS"
        assert result.published_at == datetime(2025, 6, 29, 12, tzinfo=UTC)
        assert result.page_count == 1
        assert result.markdown.startswith("# Annual Report\n\n**Author:** BIS")

    def test_without_metadata(self) -> None:
        result = normalize_pdf(pdf_bytes())
        assert result.title is None
        assert result.published_at is None
        assert result.markdown.startswith("# Document")

    def test_corrupted(self) -> None:
        with pytest.raises(NormalizationError, match="Invalid or corrupted PDF"):
            normalize_pdf(b"%PDF-1.4 garbage")


class TestTextNormalizer:
    def test_markdown_heading_becomes_title(self) -> None:
        result = normalize_text(b"# Stablecoins\n\nBody text.\n")
        assert result.title == "Stablecoins"
        assert result.markdown == "# Stablecoins\n\nBody text."

    def test_bom_stripped(self) -> None:
        assert normalize_text("\ufeffhello".encode("utf-8")).markdown == "hello"

    def test_cp1252_fallback(self) -> None:
        assert normalize_text("café".encode("cp1252")).markdown == "café"

    def test_plain_text_has_no_title(self) -> None:
        assert normalize_text(b"just text").title is None


class TestRegistry:
    def test_pdf_magic_beats_content_type(self) -> None:
        data = pdf_bytes()
        assert get_normalizer(data, "application/octet-stream", None) is normalize_pdf

    def test_mime_with_charset(self) -> None:
        assert get_normalizer(b"x", "text/plain; charset=utf-8") is normalize_text

    def test_url_suffix_fallback(self) -> None:
        assert get_normalizer(b"x", None, "https://bis.org/notes.MD") is normalize_text

    def test_unknown(self) -> None:
        assert get_normalizer(b"<html>", "text/html", "https://bis.org/") is None

    def test_final_url_preferred(self) -> None:
        content = FetchedContent(data=b"text", final_url="https://cdn.bis.org/a.txt")
        assert normalize_content(content, "https://bis.org/a").markdown == "text"

    def test_no_normalizer_raises(self) -> None:
        with pytest.raises(NormalizationError, match="No normalizer"):
            normalize_content(FetchedContent(data=b"<html>", content_type="text/html"))

    def test_deterministic(self) -> None:
        """Same bytes always yield the same markdown and metadata."""
        data = pdf_bytes(title="Report")
        first = normalize_content(FetchedContent(data=data))
        second = normalize_content(FetchedContent(data=data))
        assert first == second

    def test_supported_extensions(self) -> None:
        assert supported_extensions() == ["md", "pdf", "txt"]
