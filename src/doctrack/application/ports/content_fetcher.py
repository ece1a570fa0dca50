"""Content fetcher port."""

from typing import Protocol

from doctrack.application.dto.content import FetchedContent


class ContentFetcher(Protocol):
    """Port for retrieving raw bytes for a URL. Raises FetchError on failure."""

    async def fetch(self, url: str) -> FetchedContent: ...
