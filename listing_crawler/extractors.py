"""HTML extraction backends: links, listing title and listing body.

Three interchangeable backends are provided. Each one only knows how to walk
its own parse tree into a flat list of text fragments; whitespace and
boilerplate normalization is shared, so every backend returns the same text
for the same well-formed document:

* ``selectolax``: selectolax ``LexborHTMLParser`` (fastest)
* ``lxml``: ``lxml.html``
* ``bs4``: BeautifulSoup with the stdlib ``html.parser`` (always present)

Mis-nested markup (``a<span>b<div>c</span>d</div>e``) is repaired
differently by html.parser than by the HTML5-style parsers, so line breaks
may differ between backends on such input.
"""

from __future__ import annotations

import importlib
import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple, Type

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from .exceptions import UsageError

logger = logging.getLogger(__name__)

QR_CODE_LINE = "QR Code Link to This Post"

# Elements whose boundaries start a new line of body text
_BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "br", "dd", "div", "dl",
    "dt", "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5",
    "h6", "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section",
    "table", "td", "th", "tr", "ul",
})
_SKIP_TAGS = frozenset({"script", "style", "template", "noscript"})

_WS_RE = re.compile(r"[^\S\n]+")


def normalize_title(fragments: Iterable[str]) -> str:
    """Collapse all whitespace to single spaces and trim."""
    return " ".join("".join(fragments).split())


def normalize_body(fragments: Iterable[str]) -> str:
    """Collapse whitespace per line, drop blank lines and the QR code footer."""
    text = "".join(fragments).replace("\r\n", "\n").replace("\r", "\n")
    lines: List[str] = []
    for raw in text.split("\n"):
        line = _WS_RE.sub(" ", raw).strip()
        if line and line != QR_CODE_LINE:
            lines.append(line)
    return "\n".join(lines)


class Extractor(ABC):
    """Capability interface shared by all parser backends."""

    name = ""

    def extract_links(self, html: str) -> List[str]:
        """Return every anchor href in document order, trimmed, unfiltered."""
        if not html.strip():
            return []
        return [href.strip() for href in self._hrefs(html)]

    def extract_title(self, html: str) -> str:
        if not html.strip():
            return ""
        return normalize_title(self._fragments(html, "title"))

    def extract_body(self, html: str) -> str:
        if not html.strip():
            return ""
        return normalize_body(self._fragments(html, "body"))

    @abstractmethod
    def _hrefs(self, html: str) -> List[str]:
        """Raw href attribute values of all ``<a href>`` elements."""

    @abstractmethod
    def _fragments(self, html: str, target: str) -> List[str]:
        """Text fragments of the first element for *target* ("title" or "body").

        Block boundaries are emitted as ``"\\n"``; an absent element yields [].
        """


class SoupExtractor(Extractor):
    """BeautifulSoup with the stdlib html.parser."""

    name = "bs4"
    _SELECTORS = {"title": "span#titletextonly", "body": "#postingbody"}

    def _hrefs(self, html: str) -> List[str]:
        soup = BeautifulSoup(html, "html.parser")
        return [tag["href"] for tag in soup.find_all("a", href=True)]

    def _fragments(self, html: str, target: str) -> List[str]:
        soup = BeautifulSoup(html, "html.parser")
        element = soup.select_one(self._SELECTORS[target])
        out: List[str] = []
        if element is not None:
            self._walk(element, out)
        return out

    def _walk(self, element: Tag, out: List[str]) -> None:
        for child in element.children:
            if isinstance(child, Comment):
                continue
            if isinstance(child, NavigableString):
                out.append(str(child))
            elif isinstance(child, Tag):
                name = child.name.lower()
                if name in _SKIP_TAGS:
                    continue
                block = name in _BLOCK_TAGS
                if block:
                    out.append("\n")
                self._walk(child, out)
                if block:
                    out.append("\n")


class LxmlExtractor(Extractor):
    """lxml.html with XPath selection."""

    name = "lxml"
    _XPATHS = {
        "title": "//span[@id='titletextonly']",
        "body": "//*[@id='postingbody']",
    }

    def __init__(self) -> None:
        import lxml.etree
        import lxml.html

        self._html = lxml.html
        self._parser_error = lxml.etree.ParserError
        self._parser = lxml.html.HTMLParser(encoding="utf-8")

    def _parse(self, html: str):
        # lxml rejects str input carrying an XML encoding declaration
        try:
            return self._html.document_fromstring(
                html.encode("utf-8"), parser=self._parser,
            )
        except self._parser_error:
            logger.debug("lxml found no document in %d characters", len(html))
            return None

    def _hrefs(self, html: str) -> List[str]:
        doc = self._parse(html)
        if doc is None:
            return []
        return [a.get("href") for a in doc.xpath("//a[@href]")]

    def _fragments(self, html: str, target: str) -> List[str]:
        doc = self._parse(html)
        if doc is None:
            return []
        found = doc.xpath(self._XPATHS[target])
        out: List[str] = []
        if found:
            self._walk(found[0], out)
        return out

    def _walk(self, element, out: List[str]) -> None:
        if element.text:
            out.append(element.text)
        for child in element:
            # Comments and processing instructions have a non-string tag
            if isinstance(child.tag, str):
                name = child.tag.lower()
                if name not in _SKIP_TAGS:
                    block = name in _BLOCK_TAGS
                    if block:
                        out.append("\n")
                    self._walk(child, out)
                    if block:
                        out.append("\n")
            if child.tail:
                out.append(child.tail)


class SelectolaxExtractor(Extractor):
    """selectolax Lexbor parser with CSS selection."""

    name = "selectolax"
    _SELECTORS = {"title": "span#titletextonly", "body": "#postingbody"}

    def __init__(self) -> None:
        from selectolax.lexbor import LexborHTMLParser

        self._parser_cls = LexborHTMLParser

    def _hrefs(self, html: str) -> List[str]:
        tree = self._parser_cls(html)
        return [node.attributes.get("href") or "" for node in tree.css("a[href]")]

    def _fragments(self, html: str, target: str) -> List[str]:
        tree = self._parser_cls(html)
        node = tree.css_first(self._SELECTORS[target])
        out: List[str] = []
        if node is not None:
            self._walk(node, out)
        return out

    def _walk(self, node, out: List[str]) -> None:
        for child in node.iter(include_text=True):
            tag = child.tag
            if tag == "-text":
                out.append(child.text(deep=False))
                continue
            # "_comment" and other non-element nodes
            if tag.startswith(("_", "!", "-")) or tag in _SKIP_TAGS:
                continue
            block = tag in _BLOCK_TAGS
            if block:
                out.append("\n")
            self._walk(child, out)
            if block:
                out.append("\n")


# name -> (module imported to check availability, implementation)
BACKENDS: Dict[str, Tuple[str, Type[Extractor]]] = {
    "selectolax": ("selectolax.lexbor", SelectolaxExtractor),
    "lxml": ("lxml.html", LxmlExtractor),
    "bs4": ("bs4", SoupExtractor),
}
AUTO_ORDER = ("selectolax", "lxml", "bs4")


def _module_available(module: str) -> bool:
    """True if *module* actually imports, not merely if it is installed."""
    try:
        importlib.import_module(module)
    except ImportError as exc:
        logger.debug("Backend module %s unavailable: %s", module, exc)
        return False
    return True


def available_backends() -> List[str]:
    """Backends whose library can be imported, in auto-selection order."""
    return [name for name in AUTO_ORDER if _module_available(BACKENDS[name][0])]


def select_extractor(choice: Optional[str] = "auto") -> Extractor:
    """Return an extractor for *choice*, checking availability for ``auto``.

    Raises UsageError for an unknown name, an unavailable explicit backend,
    or when no backend at all can be imported.
    """
    choice = choice or "auto"
    if choice == "auto":
        found = available_backends()
        if not found:
            raise UsageError(
                "No HTML parser found. Install one of: selectolax, lxml, beautifulsoup4."
            )
        choice = found[0]
    elif choice not in BACKENDS:
        raise UsageError(f"Invalid --parser: {choice}")
    else:
        module = BACKENDS[choice][0]
        if not _module_available(module):
            raise UsageError(f"Missing dependency for --parser {choice}: {module}")

    extractor = BACKENDS[choice][1]()
    logger.debug("Parser selected: %s", extractor.name)
    return extractor
