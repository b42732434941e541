from __future__ import annotations

from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

from pagedigest.models.extraction import TextSource


def _require_host(url: str) -> str:
    if not urlparse(url).hostname:
        raise ValueError(f"URL has no hostname: {url!r}")
    return url


# ---------------------------------------------------------------------------
# digest_page
# ---------------------------------------------------------------------------


class DigestPageInput(BaseModel):
    html: str
    url: str
    size: Literal["large", "small"] = "large"
    selection: str = ""

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _require_host(v)

    @property
    def host(self) -> str:
        return urlparse(self.url).hostname or ""

    @property
    def mode(self) -> str:
        return f"summary_{self.size}"


class DigestPageOutput(BaseModel):
    summary: str
    mode: str
    source: TextSource
    cached: bool
    title: str | None
    input_length: int


# ---------------------------------------------------------------------------
# extract_article
# ---------------------------------------------------------------------------


class ExtractArticleInput(BaseModel):
    html: str
    url: str
    selection: str = ""

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _require_host(v)

    @property
    def host(self) -> str:
        return urlparse(self.url).hostname or ""


class CandidateReport(BaseModel):
    """One scored container candidate, for explaining a selection."""

    query: str
    length: int
    percent: int
    selected: bool


class ExtractArticleOutput(BaseModel):
    ok: bool
    source: TextSource | None
    text: str | None
    title: str | None
    error: str | None = None
    message: str | None = None
    candidates: list[CandidateReport] = []
    matched_selectors: list[str] = []
    matched_exclusions: dict[str, list[str]] = {}


# ---------------------------------------------------------------------------
# usage_stats
# ---------------------------------------------------------------------------


class UsageStatsOutput(BaseModel):
    model: str
    input_tokens: int
    output_tokens: int
    calls: int
    estimated_cost_usd: float
    cache_size: int
