"""URL filtering: listing path shape, scheme check, normalization, dedup."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Set
from urllib.parse import urljoin, urlsplit, urlunsplit

_REJECT_PREFIXES = ("javascript:", "mailto:")


def normalize_url(url: str) -> str:
    """Lower-case scheme and host, drop the fragment."""
    parts = urlsplit(url)
    return urlunsplit((
        parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, "",
    ))


class ListingFilter:
    """Turn raw hrefs into a duplicate-free set of absolute listing URLs.

    A listing URL lives under ``/<section>/`` and is either a directory-style
    id path (``/<section>/d/...``) or a numeric ``.html`` file
    (``/<section>/123.html``).
    """

    def __init__(self, base_url: str, section: str) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._path_re = re.compile(rf"/{re.escape(section)}/(?:d/|[0-9]+\.html)")
        self._seen: Set[str] = set()

    def resolve(self, href: str) -> Optional[str]:
        """Return the normalized absolute listing URL for *href*, or None."""
        href = href.strip()
        if not href or href.lower().startswith(_REJECT_PREFIXES):
            return None
        absolute = urljoin(self._base_url, href)
        parts = urlsplit(absolute)
        if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
            return None
        if not self._path_re.search(parts.path):
            return None
        return normalize_url(absolute)

    def add(self, hrefs: Iterable[str]) -> List[str]:
        """Record listing URLs from *hrefs*; return only the newly seen ones."""
        added: List[str] = []
        for href in hrefs:
            url = self.resolve(href)
            if url is None or url in self._seen:
                continue
            self._seen.add(url)
            added.append(url)
        return added

    def urls(self) -> List[str]:
        """All listing URLs seen so far, in stable sorted order."""
        return sorted(self._seen)

    def __len__(self) -> int:
        return len(self._seen)
