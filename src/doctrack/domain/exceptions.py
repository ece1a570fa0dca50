"""Domain exceptions."""


class DocTrackError(Exception):
    """Base exception for doctrack."""

    pass


class NotFound(DocTrackError):
    """Requested resource was not found."""

    pass


class ValidationError(DocTrackError):
    """Validation failed for input data."""

    pass


class FetchError(DocTrackError):
    """Remote document could not be retrieved. Retryable."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class NormalizationError(DocTrackError):
    """Fetched bytes could not be converted to text."""

    pass


class AnalysisError(DocTrackError):
    """Analysis collaborator failed. Absorbed by ingestion."""

    pass


class IngestionTimeoutError(DocTrackError, TimeoutError):
    """Waiting for an in-flight ingestion of the same document took too long."""

    pass


class ProcessingFailed(DocTrackError):
    """The in-flight ingestion a caller was waiting on ended in failure."""

    pass


class StoreError(DocTrackError):
    """Document store unavailable or a statement failed. Retryable."""

    pass


class ConsistencyViolation(DocTrackError):
    """Stored documents break an invariant. Requires operator intervention."""

    pass
