"""Article container scoring and selection.

Given an ordered list of container selectors (most specific first), every
selector's first hit is scored by how much of the page's visible text it
holds. One candidate that clearly dominates the page is taken alone;
otherwise all significant, mutually non-nested candidates are combined, with
the largest candidate as the fallback. The chosen containers are cleaned of
injected UI and excluded elements before their text is returned.

The thresholds below are the only tuning levers of the heuristic.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

import structlog

from pagedigest.dom import contains, normalize_space, safe_query_all, safe_query_first
from pagedigest.errors import ExtractionError
from pagedigest.models.extraction import (
    Article,
    ContainerCandidate,
    ExtractionFailure,
    TextToDigest,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bs4 import Tag

    from pagedigest.models.extraction import ExclusionRules, ExtractionResult
    from pagedigest.protocols import StructuralQueryProtocol

log = structlog.get_logger()

# Attribute carried by elements a host UI injects into the page.
UI_ATTR = "data-digest-ui"

# A candidate holding more than this share of the page may stand alone...
DOMINANT_PERCENT = 70
# ...provided the runner-up is below this fraction of its share.
RUNNER_UP_RATIO = 0.5
# Minimum share of the page for a candidate to join a combined extraction.
SIGNIFICANT_PERCENT = 15

DEFAULT_MIN_TEXT_LENGTH = 100

# Title candidates must be strictly between these lengths.
TITLE_MIN_LENGTH = 10
TITLE_MAX_LENGTH = 300

TITLE_SELECTORS: tuple[str, ...] = (
    '[itemprop="headline"]',
    "h1",
    "h2",
    ".article-title",
    ".post-title",
    ".entry-title",
    '[class*="article-title"]',
    '[class*="post-title"]',
)

_COMBINED_SEPARATOR = "\n\n"


def _round_percent(part: int, whole: int) -> int:
    # Half-up rounding, not banker's rounding.
    return int(100 * part / whole + 0.5)


# ---------------------------------------------------------------------------
# Scoring and selection
# ---------------------------------------------------------------------------


def score_candidates(
    doc: StructuralQueryProtocol, queries: Sequence[str]
) -> list[ContainerCandidate]:
    """First hit of every query, largest text first.

    Queries that fail to evaluate or find nothing contribute no candidate.
    """
    document_length = len(doc.rendered_text(doc.body)) or 1

    candidates: list[ContainerCandidate] = []
    for query in queries:
        node = safe_query_first(doc, doc.root, query)
        if node is None:
            continue
        raw_length = len(doc.rendered_text(node))
        candidates.append(
            ContainerCandidate(
                query=query,
                node=node,
                raw_length=raw_length,
                percent=_round_percent(raw_length, document_length),
            )
        )

    candidates.sort(key=lambda c: c.raw_length, reverse=True)
    return candidates


def is_dominant(candidates: Sequence[ContainerCandidate]) -> bool:
    """Whether the first (largest) candidate is trusted alone."""
    best = candidates[0]
    if best.percent <= DOMINANT_PERCENT:
        return False
    return len(candidates) < 2 or candidates[1].percent < best.percent * RUNNER_UP_RATIO


def non_nested(candidates: Sequence[ContainerCandidate]) -> list[ContainerCandidate]:
    """Candidates that neither contain nor sit inside any other candidate.

    Two queries hitting the same node count as nested, so both drop out.
    """
    return [
        c
        for i, c in enumerate(candidates)
        if not any(
            i != j and (contains(other.node, c.node) or contains(c.node, other.node))
            for j, other in enumerate(candidates)
        )
    ]


def select_containers(
    candidates: Sequence[ContainerCandidate], min_length: int
) -> list[ContainerCandidate]:
    """Pick the container set from candidates sorted by size.

    Returns a single candidate for the dominant and fallback cases, or every
    significant non-nested candidate when more than one qualifies.
    """
    if not candidates:
        return []

    best = candidates[0]
    if is_dominant(candidates):
        log.debug("container_selected", query=best.query, percent=best.percent, dominant=True)
        return [best]

    significant = [
        c for c in candidates if c.percent >= SIGNIFICANT_PERCENT and c.raw_length > min_length
    ]
    independent = non_nested(significant)
    if len(independent) > 1:
        log.debug("containers_combined", queries=[c.query for c in independent])
        return independent

    log.debug(
        "container_selected",
        query=best.query,
        length=best.raw_length,
        percent=best.percent,
        dominant=False,
    )
    return [best]


# ---------------------------------------------------------------------------
# Cleaning
# ---------------------------------------------------------------------------


def clean_container_text(
    doc: StructuralQueryProtocol, container: Tag, rules: ExclusionRules
) -> str:
    """Text of ``container`` without injected UI or excluded elements.

    Works on a detached copy; the document itself is never modified.
    """
    clone = doc.clone(container)

    for selector in (f"[{UI_ATTR}]", *rules.self_, *rules.ancestors):
        for node in safe_query_all(doc, clone, selector):
            doc.remove(node)

    return doc.rendered_text(clone).strip()


def find_title(doc: StructuralQueryProtocol, container: Tag) -> str | None:
    """First title-ish element inside ``container`` with a plausible length."""
    for selector in TITLE_SELECTORS:
        node = safe_query_first(doc, container, selector)
        if node is None:
            continue
        title = normalize_space(doc.rendered_text(node))
        if TITLE_MIN_LENGTH < len(title) < TITLE_MAX_LENGTH:
            return title
    return None


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def extract_body(
    doc: StructuralQueryProtocol,
    queries: Sequence[str],
    rules: ExclusionRules,
    min_length: int = DEFAULT_MIN_TEXT_LENGTH,
) -> ExtractionResult:
    """Locate the article in ``doc`` and return its cleaned text."""
    candidates = score_candidates(doc, queries)
    if not candidates:
        log.debug("no_container_found", query_count=len(queries))
        return ExtractionFailure(error=ExtractionError.NO_CONTAINER)

    top = [c for c in candidates[:5] if c.raw_length > 0]
    if len(top) > 1:
        log.debug("container_candidates", candidates=[f"{c.query} ({c.percent}%)" for c in top])

    selected = select_containers(candidates, min_length)

    if len(selected) > 1:
        combined = _COMBINED_SEPARATOR.join(
            clean_container_text(doc, c.node, rules) for c in selected
        )
        if len(combined) < min_length:
            log.debug("combined_text_too_short", length=len(combined), min_length=min_length)
            return ExtractionFailure(
                error=ExtractionError.ARTICLE_TOO_SHORT,
                actual_length=len(combined),
                min_length=min_length,
            )
        log.debug("article_extracted", length=len(combined), containers=len(selected))
        return Article(text=combined, containers=[c.node for c in selected])

    container = selected[0].node
    title = find_title(doc, container)
    text = clean_container_text(doc, container, rules)

    if not text:
        log.debug("container_has_no_text", query=selected[0].query)
        return ExtractionFailure(error=ExtractionError.NO_TEXT)

    if len(text) < min_length:
        log.debug("article_text_too_short", length=len(text), min_length=min_length)
        return ExtractionFailure(
            error=ExtractionError.ARTICLE_TOO_SHORT,
            actual_length=len(text),
            min_length=min_length,
        )

    log.debug("article_extracted", length=len(text), containers=1)
    return Article(text=text, container=container, title=title, containers=[container])


def get_selected_text(
    doc: StructuralQueryProtocol, min_length: int = DEFAULT_MIN_TEXT_LENGTH
) -> TextToDigest | ExtractionFailure | None:
    """The user's selection, a too-short failure, or ``None`` when nothing is selected."""
    text = doc.selected_text().strip()
    if not text:
        return None
    if len(text) < min_length:
        return ExtractionFailure(
            error=ExtractionError.SELECTION_TOO_SHORT,
            actual_length=len(text),
            min_length=min_length,
            source="selection",
        )
    return TextToDigest(text=text, source="selection")


def get_text_to_digest(
    doc: StructuralQueryProtocol,
    queries: Sequence[str],
    rules: ExclusionRules,
    min_length: int = DEFAULT_MIN_TEXT_LENGTH,
) -> TextToDigest | ExtractionFailure:
    """Selection first; the article container algorithm only without one."""
    selected = get_selected_text(doc, min_length)
    if selected is not None:
        return selected

    article = extract_body(doc, queries, rules, min_length)
    if isinstance(article, ExtractionFailure):
        return dataclasses.replace(article, min_length=min_length, source="article")

    return TextToDigest(
        text=article.text,
        source="article",
        container=article.container,
        title=article.title,
    )


def describe_failure(failure: ExtractionFailure) -> str:
    """Human-readable explanation of an extraction failure."""
    if failure.error == ExtractionError.SELECTION_TOO_SHORT:
        return (
            f"Selected text is too short ({failure.actual_length} chars). "
            f"Minimum is {failure.min_length} chars."
        )
    if failure.error == ExtractionError.ARTICLE_TOO_SHORT:
        return (
            f"Article text is too short ({failure.actual_length} chars). "
            f"Minimum is {failure.min_length} chars. "
            "Try selecting text manually or lower the minimum length."
        )
    if failure.error == ExtractionError.NO_CONTAINER:
        return (
            "No article container found. Try selecting text manually "
            "or add a custom selector for this site."
        )
    if failure.error == ExtractionError.NO_TEXT:
        return "Container found but no text inside. Try selecting text manually."
    return "No text found to summarize."
