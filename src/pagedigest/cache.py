"""Bounded digest cache with deferred persistence.

Maps ``(input text, mode)`` to a previously computed digest. The whole map
lives in memory and is persisted as one JSON object under ``CACHE_KEY``:

    {"<mode>:<full input text>": {"result": "...", "timestamp": <ms>}, ...}

Writes mark the map dirty; ``save()`` flushes it when dirty. A periodic
flush started by ``init()`` catches anything a write-through ``set()`` did
not persist. Eviction is by write recency only: reads never refresh an
entry's timestamp.

Keys embed the full input text rather than a hash. Very large inputs make
very large keys; this keeps the persisted format compatible with existing
caches.
"""

from __future__ import annotations

import asyncio
import json
import time
from contextlib import suppress
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from pagedigest.models.cache import CacheEntry
from pagedigest.schedulers import run_periodic_flush
from pagedigest.storage import CACHE_KEY

if TYPE_CHECKING:
    from collections.abc import Callable

    from pagedigest.protocols import StorageProtocol

log = structlog.get_logger()

CACHE_LIMIT = 50
CACHE_TRIM_TO = 30
FLUSH_INTERVAL_SECONDS = 5.0


def _now_ms() -> int:
    return int(time.time() * 1000)


class DigestCache:
    """In-memory digest map persisted through a StorageProtocol backend."""

    def __init__(
        self,
        storage: StorageProtocol,
        *,
        limit: int = CACHE_LIMIT,
        trim_to: int = CACHE_TRIM_TO,
        write_through: bool = True,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._storage = storage
        self._limit = limit
        self._trim_to = trim_to
        self._write_through = write_through
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._flush_task: asyncio.Task[None] | None = None
        self.dirty = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self, flush_interval_seconds: float | None = FLUSH_INTERVAL_SECONDS) -> None:
        """Load the persisted map and start the periodic flush.

        An unreadable blob resets the cache to empty instead of failing.
        Pass ``flush_interval_seconds=None`` to skip the background flush.
        """
        raw = await self._storage.get(CACHE_KEY, "{}")
        self._entries = self._parse(raw)
        self.dirty = False
        log.debug("cache_loaded", size=len(self._entries))

        if flush_interval_seconds is not None and self._flush_task is None:
            self._flush_task = asyncio.create_task(
                run_periodic_flush(self, flush_interval_seconds, name="digest_cache")
            )

    async def close(self) -> None:
        """Stop the periodic flush and persist any pending changes."""
        if self._flush_task is not None:
            self._flush_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._flush_task
            self._flush_task = None
        await self.save()

    @staticmethod
    def _parse(raw: str) -> dict[str, CacheEntry]:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            log.warning("cache_blob_unreadable", reason="invalid_json")
            return {}
        if not isinstance(data, dict):
            log.warning("cache_blob_unreadable", reason="not_an_object")
            return {}

        entries: dict[str, CacheEntry] = {}
        for key, value in data.items():
            if not isinstance(value, dict):
                continue
            try:
                entries[key] = CacheEntry(key=key, **value)
            except (ValidationError, TypeError):
                log.debug("cache_entry_skipped", reason="invalid_entry")
        return entries

    # ------------------------------------------------------------------
    # Lookup and mutation
    # ------------------------------------------------------------------

    @staticmethod
    def key(text: str, mode: str) -> str:
        return f"{mode}:{text}"

    def get(self, text: str, mode: str) -> CacheEntry | None:
        """Pure lookup. Does not touch the entry's timestamp."""
        return self._entries.get(self.key(text, mode))

    async def set(self, text: str, mode: str, result: str) -> None:
        """Store a digest, evicting the oldest writes once over the limit."""
        key = self.key(text, mode)
        # Reinsert so map order is write order; trimming falls back to it on equal timestamps.
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(key=key, result=result, timestamp=self._clock())
        self.dirty = True

        if len(self._entries) > self._limit:
            self._trim()

        if self._write_through:
            await self.save()

    def _trim(self) -> None:
        ordered = sorted(
            enumerate(self._entries.values()),
            key=lambda item: (item[1].timestamp, item[0]),
            reverse=True,
        )
        kept = [entry for _, entry in ordered[: self._trim_to]]
        log.debug("cache_trimmed", before=len(self._entries), after=len(kept))
        self._entries = {entry.key: entry for entry in reversed(kept)}

    async def clear(self) -> None:
        self._entries = {}
        self.dirty = False
        await self._storage.delete(CACHE_KEY)
        log.info("cache_cleared")

    async def save(self) -> None:
        """Persist the whole map if anything changed since the last save."""
        if not self.dirty:
            return
        self.dirty = False
        payload = {key: entry.to_json_obj() for key, entry in self._entries.items()}
        await self._storage.set(CACHE_KEY, json.dumps(payload, ensure_ascii=False))

    @property
    def size(self) -> int:
        return len(self._entries)
