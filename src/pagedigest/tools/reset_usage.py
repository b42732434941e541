"""Tool handler for reset_usage."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pagedigest.state import AppState


async def handle(state: AppState) -> dict:
    """Zero the token counters and return what they held before."""
    log = structlog.get_logger().bind(tool="reset_usage")
    log.info("handler_called")

    counts = state.usage.usage.digest
    previous = {
        "input_tokens": counts.input,
        "output_tokens": counts.output,
        "calls": counts.calls,
        "estimated_cost_usd": round(state.usage.cost(), 6),
    }
    await state.usage.reset()
    return {"reset": True, "previous": previous}
