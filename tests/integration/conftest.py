"""Integration test fixtures.

Provides a fully wired AppState with in-memory SQLite storage and a mocked
summarizer, plus an isolated environment for subprocess-based MCP tests.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import aiosqlite
import pytest

from pagedigest.cache import DigestCache
from pagedigest.config import Settings
from pagedigest.digest import Digester
from pagedigest.site_config import SiteConfig
from pagedigest.state import AppState
from pagedigest.storage import SqliteStorage
from pagedigest.summarizer import resolve_model
from pagedigest.usage import UsageTracker

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Baseline env dict for subprocess-based MCP integration tests.

    Points the database at an isolated tmp directory and strips any API key
    so no test can reach the real summarization API.
    """
    env = {k: v for k, v in os.environ.items() if not k.startswith("PAGEDIGEST__")}
    env["PAGEDIGEST__CACHE__DB_PATH"] = str(tmp_path / "pagedigest.db")
    env["PAGEDIGEST__LOGGING__LEVEL"] = "WARNING"
    return env


@pytest.fixture()
def summarize() -> AsyncMock:
    """Stand-in summarizer returning a fixed digest."""
    return AsyncMock(return_value="A short digest.")


@pytest.fixture()
async def app_state(summarize: AsyncMock) -> AsyncGenerator[AppState, None]:
    """Full AppState wired for handler integration tests."""
    async with aiosqlite.connect(":memory:") as db:
        storage = SqliteStorage(db)
        await storage.init_db()

        settings = Settings()
        cache = DigestCache(storage)
        await cache.init(flush_interval_seconds=None)

        yield AppState(
            settings=settings,
            storage=storage,
            cache=cache,
            digester=Digester(cache, summarize),
            usage=UsageTracker(storage, resolve_model(settings.digest.model)),
            site_config=SiteConfig(),
        )
