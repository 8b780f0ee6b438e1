"""Scrape configuration."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from . import __version__
from .exceptions import UsageError

OUTPUT_FORMATS = ("plain", "tsv", "block")
PARSER_CHOICES = ("auto", "selectolax", "lxml", "bs4")

DEFAULT_PATTERN = "mario|ps[34]|xbox|gameboy|linux|sega|brewing|books|guitar"

_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_DOMAIN_RE = re.compile(r"^[A-Za-z0-9.-]+$")


@dataclass(frozen=True)
class ScrapeConfig:
    """Configuration for one scrape run. Built once, never mutated."""

    city: str = "pittsburgh"
    domain: str = "craigslist.org"
    section: str = "gms"
    pages: int = 2
    start: int = 0
    step: int = 100
    sort: str = "date"
    query: str = ""
    pattern: str = DEFAULT_PATTERN
    output: str = "results.txt"
    append: bool = False
    output_format: str = "plain"  # "plain", "tsv" or "block"
    delay: float = 2.0
    timeout: float = 20
    retries: int = 3
    user_agent: str = f"cl-keyword-scrape/{__version__} (requests)"
    parser: str = "auto"
    print_urls: bool = False
    verbose: bool = False
    workers: int = 1

    @property
    def host(self) -> str:
        return f"{self.city}.{self.domain}"

    @property
    def base_url(self) -> str:
        return f"https://{self.host}"

    def validate(self) -> None:
        """Raise UsageError if any field is out of range or unknown."""
        if not _NAME_RE.match(self.city):
            raise UsageError(f"Invalid --city: {self.city!r}")
        if not _DOMAIN_RE.match(self.domain):
            raise UsageError(f"Invalid --domain: {self.domain!r}")
        if not _NAME_RE.match(self.section):
            raise UsageError(f"Invalid --section: {self.section!r}")
        for name in ("pages", "start", "step", "retries"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise UsageError(f"Invalid --{name}: {value!r}")
        if not isinstance(self.workers, int) or self.workers < 1:
            raise UsageError(f"Invalid --workers: {self.workers!r}")
        if not math.isfinite(self.delay) or self.delay < 0:
            raise UsageError(f"Invalid --delay: {self.delay!r}")
        if not math.isfinite(self.timeout) or self.timeout <= 0:
            raise UsageError(f"Invalid --timeout: {self.timeout!r}")
        if self.output_format not in OUTPUT_FORMATS:
            raise UsageError(f"Unknown format: {self.output_format!r}")
        if self.parser not in PARSER_CHOICES:
            raise UsageError(f"Invalid --parser: {self.parser!r}")
        if not self.pattern:
            raise UsageError("Empty --regex")
        try:
            re.compile(self.pattern)
        except re.error as exc:
            raise UsageError(f"Invalid --regex {self.pattern!r}: {exc}") from exc
        if not self.print_urls and not self.output:
            raise UsageError("Empty --output")
