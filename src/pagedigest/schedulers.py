"""Background scheduler coroutine for deferred persistence."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pagedigest.protocols import Flushable

log = structlog.get_logger()


async def run_periodic_flush(target: Flushable, interval_seconds: float, *, name: str) -> None:
    """Call ``target.save()`` every ``interval_seconds`` until cancelled.

    ``save()`` is expected to be a no-op when nothing changed, so a quiet
    interval costs nothing. A failing flush is logged and retried on the
    next tick; the loop only ends through cancellation.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await target.save()
        except Exception:
            log.warning("flush_error", target=name, exc_info=True)
