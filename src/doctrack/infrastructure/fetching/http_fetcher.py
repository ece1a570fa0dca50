"""HTTP content fetcher."""

import httpx
import structlog

from doctrack.application.dto.content import FetchedContent
from doctrack.domain.exceptions import FetchError

logger = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; DocTrackBot/1.0)"


class HttpContentFetcher:
    """Downloads raw document bytes with httpx."""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        max_bytes: int = 50 * 1024 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._user_agent = user_agent
        self._max_bytes = max_bytes
        self._transport = transport

    async def fetch(self, url: str) -> FetchedContent:
        """GET url and return its body. Raises FetchError on any failure."""
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                headers={"User-Agent": self._user_agent},
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url) as response:
                    if not response.is_success:
                        raise FetchError(url, f"HTTP {response.status_code}")
                    chunks: list[bytes] = []
                    size = 0
                    async for chunk in response.aiter_bytes():
                        size += len(chunk)
                        if size > self._max_bytes:
                            raise FetchError(url, f"body exceeds {self._max_bytes} bytes")
                        chunks.append(chunk)
                    content_type = response.headers.get("content-type")
                    final_url = str(response.url)
        except httpx.TimeoutException as e:
            raise FetchError(url, f"timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise FetchError(url, str(e) or type(e).__name__) from e

        data = b"".join(chunks)
        if not data:
            raise FetchError(url, "empty response body")
        logger.debug("document_fetched", url=url, final_url=final_url, size=len(data), content_type=content_type)
        return FetchedContent(data=data, content_type=content_type, final_url=final_url)
