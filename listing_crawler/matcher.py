"""Keyword matching on listing text."""

from __future__ import annotations

import re
from typing import List, Optional

from .exceptions import UsageError
from .models import MatchResult, Post


class Matcher:
    """Find unique, case-insensitive pattern hits in a post."""

    def __init__(self, pattern: str) -> None:
        try:
            self._regex = re.compile(pattern, re.IGNORECASE)
        except re.error as exc:
            raise UsageError(f"Invalid --regex {pattern!r}: {exc}") from exc

    def find_hits(self, content: str) -> List[str]:
        """Non-overlapping matches in order, deduplicated case-insensitively.

        The first occurrence keeps its original casing.
        """
        seen: set[str] = set()
        hits: List[str] = []
        for m in self._regex.finditer(content):
            text = m.group(0)
            if not text:
                continue
            key = text.lower()
            if key in seen:
                continue
            seen.add(key)
            hits.append(text)
        return hits

    def match(self, post: Post) -> Optional[MatchResult]:
        hits = self.find_hits(post.content)
        if not hits:
            return None
        return MatchResult(url=post.url, title=post.title, hits=tuple(hits))
