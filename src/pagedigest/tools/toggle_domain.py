"""Tool handler for toggle_domain."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from pagedigest.errors import ErrorCode, PageDigestError
from pagedigest.site_config import save_site_config

if TYPE_CHECKING:
    from pagedigest.state import AppState


async def handle(host: str, state: AppState) -> dict:
    """Flip domain gating for ``host`` and persist the updated lists."""
    log = structlog.get_logger().bind(tool="toggle_domain", host=host)
    log.info("handler_called")

    host = host.strip().lower()
    if not host or "/" in host:
        raise PageDigestError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Not a hostname: {host!r}",
            suggestion="Pass a bare hostname such as 'www.example.com'.",
            recoverable=False,
        )

    enabled = state.site_config.toggle_host(host)
    await save_site_config(state.storage, state.site_config)
    log.info("domain_toggled", enabled=enabled, mode=state.site_config.domains_mode)
    return {"host": host, "enabled": enabled, "mode": state.site_config.domains_mode}
