"""Whitespace cleanup shared by normalizers."""

import re

_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


def clean_text(text: str) -> str:
    """Normalize line endings, collapse runs of blank lines, strip."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return _EXCESS_BLANK_LINES.sub("\n\n", text).strip()


def with_header(body: str, title: str | None, author: str | None = None) -> str:
    """Prefix markdown body with a title heading and optional author line."""
    header = f"# {title or 'Document'}\n\n"
    if author:
        header += f"**Author:** {author}\n\n"
    return f"{header}{body}"
