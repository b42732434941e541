"""Tool handler for clear_cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pagedigest.state import AppState


async def handle(state: AppState) -> dict:
    """Drop every cached digest and return how many there were."""
    log = structlog.get_logger().bind(tool="clear_cache")
    log.info("handler_called")

    cleared = state.cache.size
    await state.cache.clear()
    return {"cleared": cleared}
