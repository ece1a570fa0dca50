"""Content normalizer port."""

from typing import Protocol

from doctrack.application.dto.content import FetchedContent, NormalizedContent


class ContentNormalizer(Protocol):
    """Pure conversion of fetched bytes to markdown and a content hash."""

    def __call__(self, content: FetchedContent, url: str | None = None) -> NormalizedContent: ...
