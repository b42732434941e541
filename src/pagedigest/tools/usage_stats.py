"""Tool handler for usage_stats."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from pagedigest.models.tools import UsageStatsOutput

if TYPE_CHECKING:
    from pagedigest.state import AppState


async def handle(state: AppState) -> dict:
    """Report token usage, estimated spend and cache size."""
    log = structlog.get_logger().bind(tool="usage_stats")
    log.info("handler_called")

    counts = state.usage.usage.digest
    output = UsageStatsOutput(
        model=state.usage.model.name,
        input_tokens=counts.input,
        output_tokens=counts.output,
        calls=counts.calls,
        estimated_cost_usd=round(state.usage.cost(), 6),
        cache_size=state.cache.size,
    )
    return output.model_dump(mode="json")
