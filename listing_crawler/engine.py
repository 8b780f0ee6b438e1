"""Scrape engine: the core orchestrator."""

from __future__ import annotations

import enum
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack
from typing import Iterator, List, Optional, TextIO, Tuple

from .config import ScrapeConfig
from .crawler import SearchCrawler
from .exceptions import FetchFailed
from .extractors import Extractor, select_extractor
from .fetcher import Fetcher
from .matcher import Matcher
from .models import MatchResult, Post, RunSummary
from .reporter import ReportWriter

logger = logging.getLogger(__name__)

# (url, match or None, fetch failure or None)
Outcome = Tuple[str, Optional[MatchResult], Optional[FetchFailed]]


class State(str, enum.Enum):
    INIT = "init"
    PARSER_SELECTION = "parser_selection"
    CRAWLING = "crawling"
    URLS_ONLY = "urls_only"
    FETCHING = "fetching"
    DONE = "done"
    FAILED = "failed"


class ScrapeEngine:
    """Crawl search pages, then fetch, match and report every listing.

    ``fetcher`` and ``extractor`` may be injected; otherwise they are built
    from the configuration. An injected fetcher is not closed by the engine.
    """

    def __init__(
        self,
        config: ScrapeConfig,
        fetcher: Optional[Fetcher] = None,
        extractor: Optional[Extractor] = None,
        url_stream: Optional[TextIO] = None,
    ) -> None:
        self._config = config
        self._fetcher = fetcher
        self._extractor = extractor
        self._url_stream = url_stream
        self._state = State.INIT

    @property
    def state(self) -> State:
        return self._state

    def run(self) -> RunSummary:
        summary = RunSummary()
        try:
            self._run(summary)
        except BaseException:
            self._state = State.FAILED
            raise
        self._state = State.DONE
        return summary

    def _run(self, summary: RunSummary) -> None:
        cfg = self._config
        self._state = State.INIT
        cfg.validate()
        matcher = Matcher(cfg.pattern)

        self._state = State.PARSER_SELECTION
        extractor = self._extractor or select_extractor(cfg.parser)

        with ExitStack() as stack:
            fetcher = self._fetcher
            if fetcher is None:
                fetcher = stack.enter_context(Fetcher(cfg))

            self._state = State.CRAWLING
            summary.urls = SearchCrawler(cfg, fetcher, extractor).crawl()

            if cfg.print_urls:
                self._state = State.URLS_ONLY
                stream = self._url_stream or sys.stdout
                for url in summary.urls:
                    stream.write(url + "\n")
                stream.flush()
                return

            self._state = State.FETCHING
            writer = stack.enter_context(
                ReportWriter(cfg.output, cfg.output_format, cfg.append)
            )
            logger.info("Found %d unique URLs. Fetching posts...", summary.total_urls)
            if cfg.workers > 1:
                outcomes = self._fetch_parallel(fetcher, extractor, matcher, summary.urls)
            else:
                outcomes = self._fetch_sequential(fetcher, extractor, matcher, summary.urls)

            total = summary.total_urls
            for i, (url, result, error) in enumerate(outcomes, 1):
                if error is not None:
                    logger.warning("[%d/%d] Fetch failed: %s (%s)", i, total, url, error.cause)
                    summary.failed_urls.append(url)
                    continue
                summary.fetched += 1
                if result is None:
                    logger.debug("[%d/%d] No match: %s", i, total, url)
                    continue
                writer.emit(result)
                summary.matched += 1
                logger.info("[%d/%d] Match %s %s", i, total, result.hits_label, url)

        logger.info("Done. Output: %s", cfg.output)

    @staticmethod
    def _scrape_post(
        fetcher: Fetcher, extractor: Extractor, matcher: Matcher, url: str,
    ) -> Optional[MatchResult]:
        html = fetcher.fetch(url)
        post = Post(
            url=url,
            title=extractor.extract_title(html),
            body=extractor.extract_body(html),
        )
        return matcher.match(post)

    def _fetch_sequential(
        self, fetcher: Fetcher, extractor: Extractor, matcher: Matcher, urls: List[str],
    ) -> Iterator[Outcome]:
        """Yield (url, result, error) one listing at a time, pausing after each."""
        for url in urls:
            logger.debug("Fetching post: %s", url)
            try:
                outcome = (url, self._scrape_post(fetcher, extractor, matcher, url), None)
            except FetchFailed as exc:
                outcome = (url, None, exc)
            yield outcome
            fetcher.pause()

    def _fetch_parallel(
        self, fetcher: Fetcher, extractor: Extractor, matcher: Matcher, urls: List[str],
    ) -> Iterator[Outcome]:
        """Yield (url, result, error) in URL order from a bounded worker pool."""

        def _task(url: str) -> Outcome:
            fetcher.throttle()
            logger.debug("Fetching post: %s", url)
            try:
                return url, self._scrape_post(fetcher, extractor, matcher, url), None
            except FetchFailed as exc:
                return url, None, exc

        with ThreadPoolExecutor(max_workers=self._config.workers) as pool:
            yield from pool.map(_task, urls)
