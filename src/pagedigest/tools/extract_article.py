"""Tool handler for extract_article.

Runs extraction only, without summarizing, and reports how the container
was chosen: every scored candidate, and which selectors and exclusions
match the chosen container. Domain gating does not apply here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from pagedigest.dom import SoupDocument
from pagedigest.errors import ErrorCode, PageDigestError
from pagedigest.exclusion import find_matching_exclusions, find_matching_selectors
from pagedigest.extraction import (
    describe_failure,
    get_text_to_digest,
    score_candidates,
    select_containers,
)
from pagedigest.models.extraction import ExtractionFailure
from pagedigest.models.tools import CandidateReport, ExtractArticleInput, ExtractArticleOutput

if TYPE_CHECKING:
    from pagedigest.state import AppState


async def handle(html: str, url: str, selection: str, state: AppState) -> dict:
    """Handle an extract_article tool call."""
    log = structlog.get_logger().bind(tool="extract_article", url=url)
    log.info("handler_called")

    try:
        validated = ExtractArticleInput(html=html, url=url, selection=selection)
    except ValueError as exc:
        raise PageDigestError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide the page HTML and an absolute page URL.",
            recoverable=False,
        ) from exc

    min_length = state.settings.digest.min_text_length
    selectors, rules = state.site_config.rules_for(validated.host)
    doc = SoupDocument.from_html(validated.html, selection=validated.selection)

    candidates = score_candidates(doc, selectors)
    chosen = {id(c.node) for c in select_containers(candidates, min_length)}
    reports = [
        CandidateReport(
            query=c.query,
            length=c.raw_length,
            percent=c.percent,
            selected=id(c.node) in chosen,
        )
        for c in candidates
    ]

    extracted = get_text_to_digest(doc, selectors, rules, min_length)
    if isinstance(extracted, ExtractionFailure):
        output = ExtractArticleOutput(
            ok=False,
            source=extracted.source,
            text=None,
            title=None,
            error=extracted.error,
            message=describe_failure(extracted),
            candidates=reports,
        )
        return output.model_dump(mode="json")

    matched_selectors: list[str] = []
    matched_exclusions: dict[str, list[str]] = {}
    if extracted.container is not None:
        matched_selectors = find_matching_selectors(doc, extracted.container, selectors)
        matched_exclusions = find_matching_exclusions(doc, extracted.container, rules)

    log.info("extraction_complete", source=extracted.source, length=len(extracted.text))
    output = ExtractArticleOutput(
        ok=True,
        source=extracted.source,
        text=extracted.text,
        title=extracted.title,
        candidates=reports,
        matched_selectors=matched_selectors,
        matched_exclusions=matched_exclusions,
    )
    return output.model_dump(mode="json")
