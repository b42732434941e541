"""Unit tests for pagedigest.storage."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import aiosqlite

from pagedigest.storage import CACHE_KEY, SqliteStorage

if TYPE_CHECKING:
    from pathlib import Path


class TestSqliteStorage:
    async def test_missing_key_returns_default(self, sqlite_storage: SqliteStorage) -> None:
        assert await sqlite_storage.get("missing") == ""
        assert await sqlite_storage.get("missing", "{}") == "{}"

    async def test_set_then_get(self, sqlite_storage: SqliteStorage) -> None:
        assert await sqlite_storage.set(CACHE_KEY, '{"a": 1}') is True
        assert await sqlite_storage.get(CACHE_KEY) == '{"a": 1}'

    async def test_set_overwrites(self, sqlite_storage: SqliteStorage) -> None:
        await sqlite_storage.set("k", "one")
        await sqlite_storage.set("k", "two")
        assert await sqlite_storage.get("k") == "two"

    async def test_delete(self, sqlite_storage: SqliteStorage) -> None:
        await sqlite_storage.set("k", "v")
        assert await sqlite_storage.delete("k") is True
        assert await sqlite_storage.get("k", "gone") == "gone"

    async def test_delete_missing_returns_false(self, sqlite_storage: SqliteStorage) -> None:
        assert await sqlite_storage.delete("never-set") is False

    async def test_values_survive_reconnect(self, tmp_path: Path) -> None:
        db_path = tmp_path / "pagedigest.db"
        async with aiosqlite.connect(db_path) as db:
            storage = SqliteStorage(db)
            await storage.init_db()
            await storage.set("k", "persisted")
        async with aiosqlite.connect(db_path) as db:
            storage = SqliteStorage(db)
            await storage.init_db()
            assert await storage.get("k") == "persisted"


class TestStorageFailures:
    """Database errors are logged and degrade to defaults, never raised."""

    def _broken(self) -> SqliteStorage:
        db = AsyncMock(spec=aiosqlite.Connection)
        db.execute.side_effect = aiosqlite.OperationalError("database is locked")
        return SqliteStorage(db)

    async def test_get_returns_default(self) -> None:
        assert await self._broken().get("k", "fallback") == "fallback"

    async def test_set_returns_false(self) -> None:
        assert await self._broken().set("k", "v") is False

    async def test_delete_returns_false(self) -> None:
        assert await self._broken().delete("k") is False
