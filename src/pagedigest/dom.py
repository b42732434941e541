"""Structural queries over HTML documents.

``SoupDocument`` is the concrete structural-query capability: it wraps a
BeautifulSoup tree and answers CSS selector questions through soupsieve.
Everything above this module treats selectors as opaque strings.

Every selector evaluated by the core goes through the ``safe_*`` helpers,
which turn selector failures into ``MatchOutcome.INVALID`` instead of
raising, so one bad selector only ever disables itself.
"""

from __future__ import annotations

import copy
import re
from enum import Enum
from typing import TYPE_CHECKING

import soupsieve
import structlog
from bs4 import BeautifulSoup, Comment, NavigableString, Tag

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pagedigest.protocols import StructuralQueryProtocol

log = structlog.get_logger()

# Errors soupsieve raises for selectors it cannot parse or does not support.
SELECTOR_ERRORS: tuple[type[Exception], ...] = (
    soupsieve.SelectorSyntaxError,
    NotImplementedError,
    ValueError,
    TypeError,
)

_HIDDEN_TAGS = frozenset({"script", "style", "noscript", "template", "head", "title"})

_BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "body", "br", "dd", "details",
    "dialog", "div", "dl", "dt", "fieldset", "figcaption", "figure", "footer",
    "form", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hgroup", "hr", "html",
    "li", "main", "nav", "ol", "p", "pre", "section", "summary", "table",
    "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
})

_SPACES = re.compile(r"[ \t\r\f\v\xa0]+")


class MatchOutcome(Enum):
    MATCHED = "matched"
    NOT_MATCHED = "not_matched"
    INVALID = "invalid"


# ---------------------------------------------------------------------------
# Rendered text
# ---------------------------------------------------------------------------


_BLOCK_END = object()


def _walk_text(node: Tag) -> Iterator[str]:
    # Explicit stack: pages nest deep enough to exhaust the interpreter's recursion limit.
    stack: list[object] = list(reversed(node.contents))
    while stack:
        child = stack.pop()
        if child is _BLOCK_END:
            yield "\n"
        elif isinstance(child, Comment):
            continue
        elif isinstance(child, NavigableString):
            yield str(child)
        elif isinstance(child, Tag):
            if child.name in _HIDDEN_TAGS:
                continue
            if child.name in _BLOCK_TAGS:
                yield "\n"
                stack.append(_BLOCK_END)
            stack.extend(reversed(child.contents))


def render_text(node: Tag | None) -> str:
    """Approximate ``innerText``: visible text with block elements on their own lines."""
    if node is None:
        return ""
    if isinstance(node, NavigableString):
        return str(node).strip()
    lines = ("".join(_walk_text(node))).split("\n")
    cleaned = (_SPACES.sub(" ", line).strip() for line in lines)
    return "\n".join(line for line in cleaned if line)


def normalize_space(text: str) -> str:
    return " ".join(text.split())


# ---------------------------------------------------------------------------
# Document capability
# ---------------------------------------------------------------------------


class SoupDocument:
    """Structural-query capability over a parsed HTML document.

    ``selection`` stands in for the user's text selection: hosts that know
    what the user highlighted pass it in, everyone else leaves it empty.
    """

    def __init__(self, soup: BeautifulSoup, *, selection: str = "") -> None:
        self._soup = soup
        self._selection = selection

    @classmethod
    def from_html(cls, html: str, *, selection: str = "", parser: str = "lxml") -> SoupDocument:
        return cls(BeautifulSoup(html, parser), selection=selection)

    @property
    def root(self) -> Tag:
        """The document node; container queries search everything below it."""
        return self._soup

    @property
    def body(self) -> Tag:
        """The ``body`` element, or the whole tree for fragments without one."""
        return self._soup.body or self._soup

    def matches(self, node: Tag, pattern: str) -> bool:
        return soupsieve.match(pattern, node)

    def closest(self, node: Tag, pattern: str) -> Tag | None:
        return soupsieve.closest(pattern, node)

    def query_first(self, root: Tag, pattern: str) -> Tag | None:
        return soupsieve.select_one(pattern, root)

    def query_all(self, root: Tag, pattern: str) -> list[Tag]:
        return soupsieve.select(pattern, root)

    def rendered_text(self, node: Tag) -> str:
        return render_text(node)

    def selected_text(self) -> str:
        return self._selection.strip()

    def clone(self, node: Tag) -> Tag:
        """Deep copy of a subtree, detached from the document."""
        return copy.copy(node)

    def remove(self, node: Tag) -> None:
        node.extract()


# ---------------------------------------------------------------------------
# Safe matchers
# ---------------------------------------------------------------------------


def safe_matches(doc: StructuralQueryProtocol, node: Tag, pattern: str) -> MatchOutcome:
    try:
        matched = doc.matches(node, pattern)
    except SELECTOR_ERRORS:
        log.debug("selector_invalid", selector=pattern, op="matches")
        return MatchOutcome.INVALID
    return MatchOutcome.MATCHED if matched else MatchOutcome.NOT_MATCHED


def safe_closest(doc: StructuralQueryProtocol, node: Tag, pattern: str) -> MatchOutcome:
    """Whether ``node`` or one of its ancestors matches ``pattern``."""
    try:
        found = doc.closest(node, pattern)
    except SELECTOR_ERRORS:
        log.debug("selector_invalid", selector=pattern, op="closest")
        return MatchOutcome.INVALID
    return MatchOutcome.MATCHED if found is not None else MatchOutcome.NOT_MATCHED


def safe_query_first(doc: StructuralQueryProtocol, root: Tag, pattern: str) -> Tag | None:
    try:
        return doc.query_first(root, pattern)
    except SELECTOR_ERRORS:
        log.debug("selector_invalid", selector=pattern, op="query_first")
        return None


def safe_query_all(doc: StructuralQueryProtocol, root: Tag, pattern: str) -> list[Tag]:
    try:
        return doc.query_all(root, pattern)
    except SELECTOR_ERRORS:
        log.debug("selector_invalid", selector=pattern, op="query_all")
        return []


def contains(ancestor: Tag, node: Tag) -> bool:
    """DOM ``contains``: true when ``node`` is ``ancestor`` or lies inside it."""
    if ancestor is node:
        return True
    return any(parent is ancestor for parent in node.parents)
