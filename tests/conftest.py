"""Shared fixtures: HTML pages, a scripted fetcher and a test config."""

from __future__ import annotations

from typing import Dict, List, Union

import pytest

from listing_crawler.config import ScrapeConfig
from listing_crawler.exceptions import FetchFailed

POST_HTML = """<!DOCTYPE html>
<html>
<head><title>PS4 for sale - classifieds</title></head>
<body>
<h1 class="postingtitle">
  <span class="postingtitletext">
    <span id="titletextonly">  PS4   for
      sale </span>
    <span class="price">$150</span>
  </span>
</h1>
<section id="postingbody">
  <div class="print-information print-qrcode-container">
    <p class="print-qrcode-label">QR Code Link to This Post</p>
    <div class="print-qrcode" data-location="https://city.example.org/section/1.html"></div>
  </div>

  Selling a <b>Mario</b> cart and an Xbox.<br>
  Works great &amp; comes with   two controllers.<br><br>
  <!-- hidden comment -->
  <script>var hidden = "sega";</script>
  <ul><li>PS4 slim</li><li>Mario Kart 8</li></ul>
  Pickup only.
</section>
<p><a href="/section/d/city-ps4/7712345678.html">next</a></p>
</body>
</html>
"""

POST_TITLE = "PS4 for sale"
POST_BODY = "\n".join([
    "Selling a Mario cart and an Xbox.",
    "Works great & comes with two controllers.",
    "PS4 slim",
    "Mario Kart 8",
    "Pickup only.",
])

SEARCH_HTML = """<!DOCTYPE html>
<html><body>
<ul class="results">
  <li><a href="/section/d/abc/123.html">Mario cart</a></li>
  <li><a href="/section/456789.html">Xbox</a></li>
  <li><a href="/other/1.html">Elsewhere</a></li>
  <li><a href="javascript:void(0)">Favorite</a></li>
  <li><a href="mailto:a@b.com">Mail</a></li>
  <li><a href="https://city.example.org/section/789.html">Absolute</a></li>
</ul>
</body></html>
"""

SEARCH_URLS = [
    "https://city.example.org/section/456789.html",
    "https://city.example.org/section/789.html",
    "https://city.example.org/section/d/abc/123.html",
]

# Served by some sites as XHTML; lxml refuses such a declaration on str input
XML_POST_HTML = '<?xml version="1.0" encoding="utf-8"?>\n' + POST_HTML

# Old Mac line endings inside the posting body
CR_POST_HTML = (
    "<html><body>"
    '<span id="titletextonly">Guitar</span>'
    '<section id="postingbody">line one\rline two\r\nline three</section>'
    "</body></html>"
)
CR_POST_BODY = "line one\nline two\nline three"


def post_page(title: str, body: str) -> str:
    return (
        "<html><body>"
        f'<span id="titletextonly">{title}</span>'
        f'<section id="postingbody">{body}</section>'
        "</body></html>"
    )


def search_page(*hrefs: str) -> str:
    anchors = "".join(f'<a href="{href}">x</a>' for href in hrefs)
    return f"<html><body>{anchors}</body></html>"


class FakeFetcher:
    """Serve canned pages by URL; exceptions in the map are raised as FetchFailed."""

    def __init__(self, pages: Dict[str, Union[str, Exception]]) -> None:
        self.pages = pages
        self.fetched: List[str] = []
        self.pauses = 0
        self.throttles = 0

    def fetch(self, url: str) -> str:
        self.fetched.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchFailed(url, "404 Not Found")
        if isinstance(page, Exception):
            raise FetchFailed(url, page)
        return page

    def pause(self) -> None:
        self.pauses += 1

    def throttle(self) -> None:
        self.throttles += 1


@pytest.fixture()
def config(tmp_path) -> ScrapeConfig:
    return ScrapeConfig(
        city="city",
        domain="example.org",
        section="section",
        pages=1,
        pattern="mario|xbox|ps4",
        output=str(tmp_path / "results.txt"),
        delay=0,
        parser="bs4",
    )
