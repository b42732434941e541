"""Application state container.

AppState is created once at server startup (inside the FastMCP lifespan
context manager) and injected into every tool handler via the MCP Context
object. Nothing in the package keeps module-level mutable state; two
AppState instances never share a cache, usage counters or site config.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pagedigest.cache import DigestCache
    from pagedigest.config import Settings
    from pagedigest.digest import Digester
    from pagedigest.protocols import StorageProtocol
    from pagedigest.site_config import SiteConfig
    from pagedigest.usage import UsageTracker


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings
    storage: StorageProtocol
    cache: DigestCache
    digester: Digester
    usage: UsageTracker
    site_config: SiteConfig
