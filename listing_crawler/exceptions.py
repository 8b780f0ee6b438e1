"""Error types and the process exit codes they map to."""

from __future__ import annotations

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_RUNTIME = 2


class ScrapeError(Exception):
    """Base class for every error raised by the scraper."""

    exit_code = EXIT_RUNTIME


class UsageError(ScrapeError):
    """Bad configuration, missing parser backend, or nothing to crawl."""

    exit_code = EXIT_USAGE


class FetchFailed(ScrapeError):
    """An HTTP GET that did not produce a page after all retries."""

    def __init__(self, url: str, cause: BaseException | str) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to fetch {url}: {cause}")


class SearchPageError(ScrapeError):
    """A search results page could not be fetched; the crawl cannot continue."""

    def __init__(self, failure: FetchFailed) -> None:
        self.url = failure.url
        self.cause = failure.cause
        super().__init__(f"Failed to fetch search page: {failure.url} ({failure.cause})")
