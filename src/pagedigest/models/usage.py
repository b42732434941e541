from __future__ import annotations

from pydantic import BaseModel


class TokenCounts(BaseModel):
    """Accumulated token usage for one call type."""

    input: int = 0
    output: int = 0
    calls: int = 0


class ApiUsage(BaseModel):
    """Persisted usage counters, one bucket per call type."""

    digest: TokenCounts = TokenCounts()


class ModelOption(BaseModel):
    """A selectable model with its per-million-token pricing in USD."""

    name: str
    api_model: str
    description: str
    input_per_1m: float
    output_per_1m: float
    recommended: bool = False
    priority: bool = False
