"""
Exceptions Module - Error taxonomy for the ingestion pipeline.
==============================================================

    GoLearningError
    ├── IngestError            fatal for a whole run
    │   └── IngestCancelled
    ├── FetchError
    │   ├── NetworkError       transport failure (DNS, refused, timeout)
    │   ├── HTTPStatusError    response status other than 200
    │   └── ResponseTooLargeError
    ├── ParseError             markup that cannot be parsed
    └── PersistenceError       store operation failure
"""

from typing import Optional


class GoLearningError(Exception):
    """Base class for all project errors."""


class IngestError(GoLearningError):
    """A failure that aborts the whole ingestion run."""


class IngestCancelled(IngestError):
    """The run was stopped through its stop event."""


class FetchError(GoLearningError):
    """A page could not be downloaded."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class NetworkError(FetchError):
    """Transport-level failure before any HTTP status was received."""


class HTTPStatusError(FetchError):
    """The server answered with a status code other than 200."""

    def __init__(self, status_code: int, url: str):
        super().__init__(f"unexpected status {status_code} for {url}", url=url)
        self.status_code = status_code


class ResponseTooLargeError(FetchError):
    """The response body exceeded the configured size cap."""

    def __init__(self, limit: int, url: str):
        super().__init__(f"response body of {url} exceeds {limit} bytes", url=url)
        self.limit = limit


class ParseError(GoLearningError):
    """HTML markup could not be parsed."""


class PersistenceError(GoLearningError):
    """A content store operation failed."""
