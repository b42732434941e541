"""Tool handler for digest_page.

Receives AppState, runs extraction against the merged site rules, then
delegates to the digest orchestrator. Returns a structured dict.
No MCP or FastMCP imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from pagedigest.dom import SoupDocument
from pagedigest.errors import ErrorCode, PageDigestError
from pagedigest.extraction import describe_failure, get_text_to_digest
from pagedigest.models.extraction import ExtractionFailure
from pagedigest.models.tools import DigestPageInput, DigestPageOutput

if TYPE_CHECKING:
    from pagedigest.state import AppState


async def handle(html: str, url: str, size: str, selection: str, state: AppState) -> dict:
    """Handle a digest_page tool call."""
    log = structlog.get_logger().bind(tool="digest_page", url=url, size=size)
    log.info("handler_called")

    try:
        validated = DigestPageInput(html=html, url=url, size=size, selection=selection)
    except ValueError as exc:
        raise PageDigestError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide the page HTML, an absolute page URL and size 'large' or 'small'.",
            recoverable=False,
        ) from exc

    host = validated.host
    if not state.site_config.is_enabled(host):
        raise PageDigestError(
            code=ErrorCode.DOMAIN_DISABLED,
            message=f"Digests are disabled on {host}",
            suggestion="Enable the domain with the toggle_domain tool.",
            recoverable=False,
        )

    selectors, rules = state.site_config.rules_for(host)
    doc = SoupDocument.from_html(validated.html, selection=validated.selection)
    extracted = get_text_to_digest(doc, selectors, rules, state.settings.digest.min_text_length)

    if isinstance(extracted, ExtractionFailure):
        log.info("extraction_failed", error=extracted.error, actual_length=extracted.actual_length)
        raise PageDigestError(
            code=ErrorCode.EXTRACTION_FAILED,
            message=describe_failure(extracted),
            suggestion="Pass the text to summarize as 'selection', or add a site selector.",
            recoverable=False,
        )

    mode = validated.mode
    cached = state.cache.get(extracted.text, mode) is not None
    summary = await state.digester.digest(extracted.text, mode)
    log.info("digest_served", source=extracted.source, cached=cached)

    output = DigestPageOutput(
        summary=summary,
        mode=mode,
        source=extracted.source,
        cached=cached,
        title=extracted.title,
        input_length=len(extracted.text),
    )
    return output.model_dump(mode="json")
