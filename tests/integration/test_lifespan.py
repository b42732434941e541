"""Integration tests for the server lifespan.

Runs the real lifespan against an on-disk database in a tmp directory and
checks what survives a restart.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from pagedigest.server import lifespan, mcp

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def server_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in list(os.environ):
        if key.startswith("PAGEDIGEST__"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("PAGEDIGEST__CACHE__DB_PATH", str(tmp_path / "pagedigest.db"))
    monkeypatch.setenv("PAGEDIGEST__LOGGING__LEVEL", "WARNING")
    return monkeypatch


class TestCacheAcrossRestarts:
    async def test_cache_survives_restart_with_same_settings(
        self, server_env: pytest.MonkeyPatch
    ) -> None:
        async with lifespan(mcp) as state:
            await state.cache.set("article text", "summary_large", "digest")

        async with lifespan(mcp) as state:
            assert state.cache.size == 1
            assert state.cache.get("article text", "summary_large").result == "digest"

    async def test_simplification_change_clears_cache(
        self, server_env: pytest.MonkeyPatch
    ) -> None:
        async with lifespan(mcp) as state:
            await state.cache.set("article text", "summary_large", "digest")

        server_env.setenv("PAGEDIGEST__DIGEST__SIMPLIFICATION", "Aggressive")
        async with lifespan(mcp) as state:
            assert state.cache.size == 0

        async with lifespan(mcp) as state:
            await state.cache.set("article text", "summary_large", "stronger digest")

        async with lifespan(mcp) as state:
            assert state.cache.size == 1

    async def test_prompt_override_change_clears_cache(
        self, server_env: pytest.MonkeyPatch
    ) -> None:
        async with lifespan(mcp) as state:
            await state.cache.set("article text", "summary_small", "digest")

        server_env.setenv("PAGEDIGEST__DIGEST__PROMPTS", '{"summary_small": "Be terse."}')
        async with lifespan(mcp) as state:
            assert state.cache.size == 0
