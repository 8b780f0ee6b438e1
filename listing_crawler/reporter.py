"""Render matches and append them to the report file."""

from __future__ import annotations

import logging
import os
from typing import Optional, TextIO

from .config import OUTPUT_FORMATS
from .exceptions import UsageError
from .models import MatchResult

logger = logging.getLogger(__name__)


def render(result: MatchResult, fmt: str) -> str:
    """Format one match as a complete, newline-terminated record.

    plain:  ``Match! (hit1)(hit2) URL - Title``
    tsv:    ``Match!<TAB>(hit1)(hit2)<TAB>URL<TAB>Title``
    block:  match line, ``URL:`` line, ``Title:`` line, blank line
    """
    hits = result.hits_label
    if fmt == "plain":
        if result.title:
            return f"Match! {hits} {result.url} - {result.title}\n"
        return f"Match! {hits} {result.url}\n"
    if fmt == "tsv":
        return f"Match!\t{hits}\t{result.url}\t{result.title}\n"
    if fmt == "block":
        return (
            f"Match! {hits}\n"
            f"URL:   {result.url}\n"
            f"Title: {result.title}\n"
            "\n"
        )
    raise UsageError(f"Unknown format: {fmt}")


class ReportWriter:
    """Append-only report sink, flushed after every record."""

    def __init__(self, path: str, fmt: str = "plain", append: bool = False) -> None:
        if fmt not in OUTPUT_FORMATS:
            raise UsageError(f"Unknown format: {fmt}")
        self._path = path
        self._fmt = fmt
        self._append = append
        self._stream: Optional[TextIO] = None
        self.records = 0

    def open(self) -> "ReportWriter":
        directory = os.path.dirname(self._path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        mode = "a" if self._append else "w"
        self._stream = open(self._path, mode, encoding="utf-8")
        logger.debug("Opened report %s (mode=%s)", self._path, mode)
        return self

    def emit(self, result: MatchResult) -> str:
        if self._stream is None:
            raise RuntimeError("ReportWriter.emit() called before open()")
        record = render(result, self._fmt)
        self._stream.write(record)
        self._stream.flush()
        self.records += 1
        return record

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def __enter__(self) -> "ReportWriter":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()
