"""Digest orchestrator: cache lookup, summarizer call, output normalization.

A cache hit returns immediately without calling the summarizer. On a miss
the summarizer's raw output is normalized and cached under the input text
and mode. Summarizer failures propagate unchanged and nothing is cached.

Cached digests depend on the simplification level and the prompt
overrides as well as the input. A fingerprint of those settings is
persisted beside the cache, and the cache is cleared at startup when it
no longer matches.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import TYPE_CHECKING

import structlog

from pagedigest.storage import DIGEST_SETTINGS_KEY

if TYPE_CHECKING:
    from pagedigest.cache import DigestCache
    from pagedigest.config import DigestSettings
    from pagedigest.protocols import StorageProtocol, TransformProtocol

log = structlog.get_logger()

_CODE_FENCE = re.compile(r"\A```(?:json)?\s*|\s*```\Z")


def settings_fingerprint(settings: DigestSettings) -> str:
    """Stable hash of the settings that shape a digest's output."""
    material = json.dumps(
        {"simplification": settings.simplification, "prompts": settings.prompts},
        sort_keys=True,
        ensure_ascii=False,
    )
    return hashlib.sha256(material.encode()).hexdigest()


async def invalidate_on_settings_change(
    storage: StorageProtocol, cache: DigestCache, settings: DigestSettings
) -> bool:
    """Clear ``cache`` if the digest settings changed since the last run.

    Returns ``True`` if the cache was cleared. A missing fingerprint (first
    run, or a store written before fingerprints existed) is recorded
    without clearing.
    """
    current = settings_fingerprint(settings)
    stored = await storage.get(DIGEST_SETTINGS_KEY, "")
    if stored == current:
        return False

    cleared = bool(stored)
    if cleared:
        log.info("digest_settings_changed", cleared_entries=cache.size)
        await cache.clear()
    await storage.set(DIGEST_SETTINGS_KEY, current)
    return cleared


def normalize_output(raw: str) -> str:
    """Strip a code-fence wrapper and unwrap JSON string or string-array output."""
    cleaned = _CODE_FENCE.sub("", raw).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        return cleaned

    if isinstance(parsed, list) and all(isinstance(item, str) for item in parsed):
        return "\n\n".join(parsed)
    if isinstance(parsed, str):
        return parsed
    return cleaned


class Digester:
    """Runs digests against one cache and a default summarizer.

    Each instance is self-contained, so independent sessions can run side by
    side. Overlapping calls for the same key are not coordinated; callers
    that care disable their own trigger while a request is in flight.
    """

    def __init__(self, cache: DigestCache, transform: TransformProtocol) -> None:
        self._cache = cache
        self._transform = transform

    async def digest(
        self,
        text: str,
        mode: str,
        transform: TransformProtocol | None = None,
    ) -> str:
        cached = self._cache.get(text, mode)
        if cached is not None:
            log.info("digest_cache_hit", mode=mode, input_length=len(text))
            return cached.result

        raw = await (transform or self._transform)(text, mode)
        result = normalize_output(raw)
        await self._cache.set(text, mode, result)
        log.info("digest_complete", mode=mode, input_length=len(text), output_length=len(result))
        return result
