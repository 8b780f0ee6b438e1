"""Search-page pagination: collect listing URLs across result pages."""

from __future__ import annotations

import logging
from typing import List
from urllib.parse import quote, urlencode

from .config import ScrapeConfig
from .exceptions import FetchFailed, SearchPageError, UsageError
from .extractors import Extractor
from .fetcher import Fetcher
from .filters import ListingFilter

logger = logging.getLogger(__name__)


class SearchCrawler:
    """Walk ``pages`` search result pages and collect listing URLs."""

    def __init__(self, config: ScrapeConfig, fetcher: Fetcher, extractor: Extractor) -> None:
        self._config = config
        self._fetcher = fetcher
        self._extractor = extractor
        self._filter = ListingFilter(config.base_url, config.section)

    def offsets(self) -> List[int]:
        cfg = self._config
        return [cfg.start + i * cfg.step for i in range(cfg.pages)]

    def search_url(self, offset: int) -> str:
        params = {"s": offset, "sort": self._config.sort}
        if self._config.query:
            params["query"] = self._config.query
        query_string = urlencode(params, quote_via=quote, safe="")
        return f"{self._config.base_url}/search/{self._config.section}?{query_string}"

    def listing_urls(self, html: str) -> List[str]:
        """Newly discovered listing URLs on one search page."""
        return self._filter.add(self._extractor.extract_links(html))

    def crawl(self) -> List[str]:
        """Fetch every search page and return the sorted, unique listing URLs.

        Raises SearchPageError if a search page cannot be fetched, and
        UsageError if no listing URL was found at all.
        """
        cfg = self._config
        logger.info(
            "Collecting URLs (host=%s section=%s pages=%d start=%d step=%d sort=%s query=%s)",
            cfg.host, cfg.section, cfg.pages, cfg.start, cfg.step, cfg.sort, cfg.query,
        )
        for offset in self.offsets():
            url = self.search_url(offset)
            logger.debug("Fetching search page: %s", url)
            try:
                html = self._fetcher.fetch(url)
            except FetchFailed as exc:
                raise SearchPageError(exc) from exc
            new_urls = self.listing_urls(html)
            logger.debug("%d new listing URLs from %s", len(new_urls), url)
            self._fetcher.pause()

        urls = self._filter.urls()
        logger.info("Unique listing URLs: %d", len(urls))
        if not urls:
            raise UsageError(
                "No listing URLs found. Page markup likely changed; "
                "try another --parser or check --city/--section."
            )
        return urls
