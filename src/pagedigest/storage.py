"""SQLite key-value store backing every persisted blob.

The digest cache, its settings fingerprint, the usage counters and the site
configuration are each persisted as one string under a fixed key. All
operations catch ``aiosqlite.Error`` internally and degrade gracefully:
reads return the caller's default, writes and deletes return ``False``.
Infrastructure errors never cross the storage boundary; they are logged
with ``exc_info=True``.
"""

from __future__ import annotations

from datetime import UTC, datetime

import aiosqlite
import structlog

log = structlog.get_logger()

# Keys for persisted blobs
CACHE_KEY = "digest_cache_v1"
API_TOKENS_KEY = "digest_api_tokens_v1"
SELECTORS_GLOBAL_KEY = "digest_selectors_v1"
EXCLUDES_GLOBAL_KEY = "digest_excludes_v1"
DOMAIN_SELECTORS_KEY = "digest_domain_selectors_v1"
DOMAIN_EXCLUDES_KEY = "digest_domain_excludes_v1"
DOMAINS_MODE_KEY = "digest_domains_mode_v1"
DOMAINS_ALLOW_KEY = "digest_domains_enabled_v1"
DOMAINS_DENY_KEY = "digest_domains_excluded_v1"
DIGEST_SETTINGS_KEY = "digest_settings_fingerprint_v1"

_CREATE_KV_TABLE = """
CREATE TABLE IF NOT EXISTS kv_store (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


class SqliteStorage:
    """SQLite-backed key-value store implementing StorageProtocol."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create the table and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_KV_TABLE)
        await self._db.commit()

    async def get(self, key: str, default: str = "") -> str:
        """Read a value. Returns ``default`` when missing or on read failure."""
        try:
            cursor = await self._db.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = await cursor.fetchone()
        except aiosqlite.Error:
            log.warning("storage_read_error", key=key, exc_info=True)
            return default
        if row is None:
            return default
        return row[0]

    async def set(self, key: str, value: str) -> bool:
        """Write a value. Non-fatal on failure."""
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, datetime.now(UTC).isoformat()),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("storage_write_error", key=key, exc_info=True)
            return False
        return True

    async def delete(self, key: str) -> bool:
        """Delete a value. Returns ``True`` if a row was removed."""
        try:
            cursor = await self._db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("storage_delete_error", key=key, exc_info=True)
            return False
        return cursor.rowcount > 0
