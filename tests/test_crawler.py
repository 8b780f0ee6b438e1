"""Search-page URL building, listing filtering and the crawl loop."""

from __future__ import annotations

from dataclasses import replace

import pytest

from listing_crawler.crawler import SearchCrawler
from listing_crawler.exceptions import SearchPageError, UsageError
from listing_crawler.extractors import SoupExtractor
from listing_crawler.filters import ListingFilter, normalize_url

from .conftest import SEARCH_HTML, SEARCH_URLS, FakeFetcher, search_page

BASE = "https://city.example.org"


def make_crawler(config, pages):
    fetcher = FakeFetcher(pages)
    return SearchCrawler(config, fetcher, SoupExtractor()), fetcher


class TestListingFilter:
    def test_fixture_hrefs(self) -> None:
        f = ListingFilter(BASE, "section")
        hrefs = SoupExtractor().extract_links(SEARCH_HTML)
        assert sorted(f.add(hrefs)) == SEARCH_URLS
        assert f.urls() == SEARCH_URLS

    @pytest.mark.parametrize("href", [
        "/other/1.html",
        "javascript:void(0)",
        "JavaScript:alert(1)",
        "mailto:a@b.com",
        "",
        "   ",
        "/section/abc.html",
        "ftp://city.example.org/section/1.html",
    ])
    def test_rejected(self, href) -> None:
        assert ListingFilter(BASE, "section").resolve(href) is None

    def test_relative_and_absolute_dedup(self) -> None:
        f = ListingFilter(BASE, "section")
        added = f.add([
            "/section/d/abc/123.html",
            "https://city.example.org/section/d/abc/123.html",
            "HTTPS://CITY.example.org/section/d/abc/123.html#map",
        ])
        assert added == ["https://city.example.org/section/d/abc/123.html"]
        assert len(f) == 1

    def test_path_relative_href(self) -> None:
        f = ListingFilter(BASE, "section")
        assert f.resolve("section/42.html") == "https://city.example.org/section/42.html"

    def test_section_is_literal(self) -> None:
        f = ListingFilter(BASE, "a.b")
        assert f.resolve("/a.b/1.html") is not None
        assert f.resolve("/axb/1.html") is None

    def test_normalize_url(self) -> None:
        assert normalize_url("HTTP://Host.Example/Path?q=1#frag") == "http://host.example/Path?q=1"


class TestSearchUrls:
    def test_offsets(self, config) -> None:
        cfg = replace(config, pages=4, start=30, step=120)
        crawler, _ = make_crawler(cfg, {})
        assert crawler.offsets() == [30, 150, 270, 390]
        urls = [crawler.search_url(o) for o in crawler.offsets()]
        assert len(set(urls)) == 4

    def test_zero_pages(self, config) -> None:
        crawler, _ = make_crawler(replace(config, pages=0), {})
        assert crawler.offsets() == []

    def test_url_without_query(self, config) -> None:
        crawler, _ = make_crawler(config, {})
        assert crawler.search_url(100) == f"{BASE}/search/section?s=100&sort=date"

    def test_query_is_percent_encoded(self, config) -> None:
        crawler, _ = make_crawler(replace(config, query="ps4 & xbox/one", sort="priceasc"), {})
        assert crawler.search_url(0) == (
            f"{BASE}/search/section?s=0&sort=priceasc&query=ps4%20%26%20xbox%2Fone"
        )


class TestCrawl:
    def test_collects_across_pages(self, config) -> None:
        cfg = replace(config, pages=2, step=100)
        page0 = f"{BASE}/search/section?s=0&sort=date"
        page1 = f"{BASE}/search/section?s=100&sort=date"
        crawler, fetcher = make_crawler(cfg, {
            page0: SEARCH_HTML,
            page1: search_page("/section/456789.html", "/section/1000.html"),
        })
        urls = crawler.crawl()
        assert urls == sorted(SEARCH_URLS + [f"{BASE}/section/1000.html"])
        assert fetcher.fetched == [page0, page1]
        assert fetcher.pauses == 2

    def test_search_page_failure_is_fatal(self, config) -> None:
        crawler, _ = make_crawler(config, {})
        with pytest.raises(SearchPageError) as info:
            crawler.crawl()
        assert info.value.url.startswith(f"{BASE}/search/section")
        assert info.value.exit_code == 2

    def test_empty_crawl_is_usage_error(self, config) -> None:
        page0 = f"{BASE}/search/section?s=0&sort=date"
        crawler, fetcher = make_crawler(config, {page0: search_page("/other/1.html")})
        with pytest.raises(UsageError, match="No listing URLs found"):
            crawler.crawl()
        assert fetcher.fetched == [page0]
