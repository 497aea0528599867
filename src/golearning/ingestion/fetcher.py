"""
Fetcher Module - HTTP page download with timeouts and size caps.
================================================================

Downloads tutorial pages for the pipeline:
- One shared requests session with a descriptive user agent
- Bounded timeout on every request
- Response body size cap, enforced while streaming
- Distinct errors for transport failures and bad status codes
- Optional retries of transport failures (off by default)
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from urllib.parse import urljoin

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from golearning.shared.config import get_settings
from golearning.shared.exceptions import (
    HTTPStatusError,
    NetworkError,
    ResponseTooLargeError,
)
from golearning.shared.logging import get_logger
from golearning.shared.utils import utc_now

logger = get_logger(__name__)

_CHUNK_SIZE = 64 * 1024


@dataclass
class FetcherStats:
    """Statistics for one fetch session."""

    total_requests: int = 0
    successful: int = 0
    failed: int = 0
    total_bytes: int = 0
    total_seconds: float = 0.0
    start_time: datetime = field(default_factory=utc_now)

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 1.0
        return self.successful / self.total_requests


class Fetcher:
    """
    HTTP fetcher for tutorial pages.

    Raises ``NetworkError`` when the request never produced a response,
    ``HTTPStatusError`` for any status other than 200 and
    ``ResponseTooLargeError`` when the body exceeds the size cap. The
    response is closed on every path.

    Example:
        >>> with Fetcher("https://metanit.com/go/tutorial") as fetcher:
        ...     html = fetcher.fetch("/go/tutorial/1.1.php")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        max_body_bytes: Optional[int] = None,
        max_attempts: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            base_url: Site base URL used to resolve relative lesson paths
            timeout: Request timeout in seconds
            user_agent: User agent string
            max_body_bytes: Maximum accepted response body size
            max_attempts: Attempts per URL for transport failures (1 = no retry)
            session: Pre-built session (mainly for tests)
        """
        settings = get_settings()
        config = settings.fetching

        self.base_url = (base_url or settings.get_effective_base_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else config.timeout
        self.user_agent = user_agent or config.user_agent
        self.max_body_bytes = (
            max_body_bytes if max_body_bytes is not None else config.max_body_bytes
        )
        self.max_attempts = max_attempts if max_attempts is not None else config.max_attempts
        self.retry_min_wait = config.retry_min_wait
        self.retry_max_wait = config.retry_max_wait

        self._session = session
        self.stats = FetcherStats()

        logger.debug(
            f"Fetcher initialized: base={self.base_url}, timeout={self.timeout}s, "
            f"cap={self.max_body_bytes}B, attempts={self.max_attempts}"
        )

    @property
    def session(self) -> requests.Session:
        """Get or create the requests session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(
                {
                    "User-Agent": self.user_agent,
                    "Accept": "text/html,application/xhtml+xml",
                    "Accept-Language": "ru,en;q=0.5",
                }
            )
        return self._session

    def resolve(self, path: str) -> str:
        """
        Resolve a lesson link against the site base URL.

        Example:
            >>> Fetcher("https://metanit.com/go/tutorial").resolve("/go/tutorial/1.1.php")
            'https://metanit.com/go/tutorial/1.1.php'
        """
        if path.startswith(("http://", "https://")):
            return path
        return urljoin(self.base_url + "/", path)

    def fetch(self, url: str) -> str:
        """
        Download a page and return its HTML text.

        Args:
            url: Absolute URL or path relative to the base URL

        Raises:
            NetworkError: Transport failure
            HTTPStatusError: Status code other than 200
            ResponseTooLargeError: Body larger than the size cap
        """
        url = self.resolve(url)

        @retry(
            retry=retry_if_exception_type(NetworkError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(min=self.retry_min_wait, max=self.retry_max_wait),
            reraise=True,
            before_sleep=lambda retry_state: logger.warning(
                f"Retry {retry_state.attempt_number}/{self.max_attempts} for {url}"
            ),
        )
        def _fetch_with_retry() -> str:
            return self._request(url)

        self.stats.total_requests += 1
        started = time.monotonic()
        try:
            html = _fetch_with_retry()
        except Exception:
            self.stats.failed += 1
            raise
        finally:
            self.stats.total_seconds += time.monotonic() - started

        self.stats.successful += 1
        logger.debug(f"Fetched {url} ({len(html)} chars)")
        return html

    def _request(self, url: str) -> str:
        """Perform a single GET and read the capped body."""
        try:
            response = self.session.get(url, timeout=self.timeout, stream=True)
        except requests.RequestException as e:
            raise NetworkError(f"request to {url} failed: {e}", url=url) from e

        with response:
            if response.status_code != 200:
                raise HTTPStatusError(response.status_code, url)

            try:
                raw = self._read_capped(response, url)
            except requests.RequestException as e:
                raise NetworkError(f"reading {url} failed: {e}", url=url) from e

        self.stats.total_bytes += len(raw)
        return self._decode(response, raw)

    def _read_capped(self, response: requests.Response, url: str) -> bytes:
        declared = response.headers.get("Content-Length", "")
        if declared.isdigit() and int(declared) > self.max_body_bytes:
            raise ResponseTooLargeError(self.max_body_bytes, url)

        chunks = []
        received = 0
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            received += len(chunk)
            if received > self.max_body_bytes:
                raise ResponseTooLargeError(self.max_body_bytes, url)
            chunks.append(chunk)
        return b"".join(chunks)

    @staticmethod
    def _decode(response: requests.Response, raw: bytes) -> str:
        # requests assumes ISO-8859-1 for text/* without a charset; the sites we read are UTF-8
        content_type = response.headers.get("Content-Type", "").lower()
        encoding = response.encoding if "charset=" in content_type else None
        try:
            return raw.decode(encoding or "utf-8", errors="replace")
        except LookupError:
            return raw.decode("utf-8", errors="replace")

    def get_stats(self) -> FetcherStats:
        """Get fetch statistics."""
        return self.stats

    def close(self) -> None:
        """Close the underlying session."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        self.close()
