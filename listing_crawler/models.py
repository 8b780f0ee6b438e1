"""Data models for scrape results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class Post:
    """Text extracted from a single listing detail page."""

    url: str
    title: str = ""
    body: str = ""

    @property
    def content(self) -> str:
        return f"{self.title}\n{self.body}"


@dataclass(frozen=True)
class MatchResult:
    """A listing whose text matched the pattern at least once."""

    url: str
    title: str
    hits: Tuple[str, ...]

    @property
    def hits_label(self) -> str:
        return "".join(f"({hit})" for hit in self.hits)


@dataclass
class RunSummary:
    """Aggregated outcome of a scrape run."""

    urls: List[str] = field(default_factory=list)
    fetched: int = 0
    matched: int = 0
    failed_urls: List[str] = field(default_factory=list)

    @property
    def total_urls(self) -> int:
        return len(self.urls)

    @property
    def total_failed(self) -> int:
        return len(self.failed_urls)
