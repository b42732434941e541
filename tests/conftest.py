"""Shared test fixtures for the pagedigest test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import pytest

from pagedigest.models.extraction import ExclusionRules
from pagedigest.storage import SqliteStorage

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


class MemoryStorage:
    """Dict-backed StorageProtocol implementation that records writes."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.writes: list[str] = []

    async def get(self, key: str, default: str = "") -> str:
        return self.data.get(key, default)

    async def set(self, key: str, value: str) -> bool:
        self.data[key] = value
        self.writes.append(key)
        return True

    async def delete(self, key: str) -> bool:
        return self.data.pop(key, None) is not None


@pytest.fixture()
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
async def sqlite_storage() -> AsyncGenerator[SqliteStorage, None]:
    """SqliteStorage over an in-memory database."""
    async with aiosqlite.connect(":memory:") as db:
        storage = SqliteStorage(db)
        await storage.init_db()
        yield storage


@pytest.fixture()
def no_rules() -> ExclusionRules:
    return ExclusionRules()
