"""Token usage counters and cost estimate for summarizer calls.

Counters are persisted under ``API_TOKENS_KEY`` with the same dirty-flag
scheme as the digest cache: ``record()`` only mutates memory, the periodic
flush (or an explicit ``save()``) writes it out.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from pagedigest.models.usage import ApiUsage
from pagedigest.storage import API_TOKENS_KEY

if TYPE_CHECKING:
    from pagedigest.models.usage import ModelOption
    from pagedigest.protocols import StorageProtocol

log = structlog.get_logger()


class UsageTracker:
    def __init__(self, storage: StorageProtocol, model: ModelOption) -> None:
        self._storage = storage
        self.model = model
        self.usage = ApiUsage()
        self.dirty = False

    async def load(self) -> None:
        raw = await self._storage.get(API_TOKENS_KEY, "")
        if not raw:
            return
        try:
            self.usage = ApiUsage.model_validate_json(raw)
        except ValidationError:
            log.warning("usage_blob_unreadable")
            self.usage = ApiUsage()

    def record(self, usage: dict | None) -> None:
        """Add one API response's ``usage`` block to the digest counters.

        Accepts both Responses API (``input_tokens``) and Chat Completions
        (``prompt_tokens``) field names.
        """
        if not usage:
            return
        input_tokens = usage.get("input_tokens") or usage.get("prompt_tokens") or 0
        output_tokens = usage.get("output_tokens") or usage.get("completion_tokens") or 0
        if input_tokens == 0 and output_tokens == 0:
            log.warning("usage_missing_token_counts", usage=usage)
            return

        counts = self.usage.digest
        counts.input += input_tokens
        counts.output += output_tokens
        counts.calls += 1
        self.dirty = True
        log.debug(
            "usage_recorded",
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=counts.input + counts.output,
        )

    def cost(self) -> float:
        """Estimated spend in USD at the current model's pricing."""
        counts = self.usage.digest
        return (
            counts.input * self.model.input_per_1m / 1_000_000
            + counts.output * self.model.output_per_1m / 1_000_000
        )

    async def reset(self) -> None:
        self.usage = ApiUsage()
        self.dirty = False
        await self._storage.set(API_TOKENS_KEY, self.usage.model_dump_json())
        log.info("usage_reset")

    async def save(self) -> None:
        if not self.dirty:
            return
        self.dirty = False
        await self._storage.set(API_TOKENS_KEY, self.usage.model_dump_json())
