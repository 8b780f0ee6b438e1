"""HTTP fetching with rate limiting and retries."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import ScrapeConfig
from .exceptions import FetchFailed

logger = logging.getLogger(__name__)

_RETRY_STATUSES = (429, 500, 502, 503, 504)
_CHUNK_SIZE = 16384


def build_session(config: ScrapeConfig) -> requests.Session:
    """Session with the configured User-Agent and transport-level retries."""
    session = requests.Session()
    session.headers.update({"User-Agent": config.user_agent})
    retry = Retry(
        total=config.retries,
        connect=config.retries,
        read=config.retries,
        status=config.retries,
        backoff_factor=1,
        status_forcelist=_RETRY_STATUSES,
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
        # Backoff stays exponential; a server's Retry-After could stall for hours
        respect_retry_after_header=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def decode_body(resp: requests.Response, content: bytes) -> str:
    """Decode *content* with the declared charset, preferring UTF-8 otherwise.

    Without a charset requests assumes ISO-8859-1 for ``text/*``, which
    turns UTF-8 pages into mojibake.
    """
    content_type = resp.headers.get("Content-Type", "")
    if "charset" in content_type.lower():
        encoding = resp.encoding or "utf-8"
    else:
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError:
            encoding = resp.encoding or "iso-8859-1"
            logger.debug("%s is not UTF-8, decoding as %s", resp.url, encoding)
    try:
        return content.decode(encoding, errors="replace")
    except LookupError:
        logger.debug("Unknown charset %r for %s", encoding, resp.url)
        return content.decode("utf-8", errors="replace")


class Fetcher:
    """Handles HTTP requests with rate limiting and retry logic.

    Retries and their backoff happen inside the transport adapter; a URL
    that still fails afterwards raises FetchFailed and it is up to the
    caller whether that is fatal.
    """

    def __init__(
        self,
        config: ScrapeConfig,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._session = session if session is not None else build_session(config)
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.Lock()
        self._last_request_time: float = 0.0

    def fetch(self, url: str) -> str:
        """GET *url* and return its decoded body.

        Connect and header reads are bounded per attempt by the socket
        timeouts. The body download is cut off ``timeout`` seconds of wall
        clock after the response arrives, however slowly the server sends it.
        """
        timeout = self._config.timeout
        logger.debug("Fetching %s", url)
        try:
            resp = self._session.get(
                url, timeout=timeout, allow_redirects=True, stream=True,
            )
            with resp:
                resp.raise_for_status()
                content = self._read_body(url, resp, self._clock() + timeout)
        except requests.RequestException as exc:
            raise FetchFailed(url, exc) from exc
        return decode_body(resp, content)

    def _read_body(self, url: str, resp: requests.Response, deadline: float) -> bytes:
        chunks: List[bytes] = []
        for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
            chunks.append(chunk)
            if self._clock() > deadline:
                raise FetchFailed(url, f"timed out after {self._config.timeout:g}s")
        return b"".join(chunks)

    def pause(self) -> None:
        """Courtesy delay after a request, successful or not."""
        if self._config.delay > 0:
            self._sleep(self._config.delay)

    def throttle(self) -> None:
        """Block until ``delay`` seconds have passed since the last request start.

        Used by worker threads instead of pause(); the shared lock keeps the
        aggregate rate at one request per ``delay`` seconds.
        """
        delay = self._config.delay
        with self._lock:
            if self._last_request_time and delay > 0:
                elapsed = time.monotonic() - self._last_request_time
                if elapsed < delay:
                    self._sleep(delay - elapsed)
            self._last_request_time = time.monotonic()

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
