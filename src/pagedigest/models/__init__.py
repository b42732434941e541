from __future__ import annotations

from pagedigest.models.cache import CacheEntry
from pagedigest.models.extraction import (
    Article,
    ContainerCandidate,
    ExclusionRules,
    ExtractionFailure,
    ExtractionResult,
    TextSource,
    TextToDigest,
)
from pagedigest.models.tools import (
    CandidateReport,
    DigestPageInput,
    DigestPageOutput,
    ExtractArticleInput,
    ExtractArticleOutput,
    UsageStatsOutput,
)
from pagedigest.models.usage import ApiUsage, ModelOption, TokenCounts

__all__ = [
    # extraction
    "ExclusionRules",
    "ContainerCandidate",
    "Article",
    "ExtractionFailure",
    "ExtractionResult",
    "TextSource",
    "TextToDigest",
    # cache
    "CacheEntry",
    # usage
    "ApiUsage",
    "TokenCounts",
    "ModelOption",
    # tools
    "DigestPageInput",
    "DigestPageOutput",
    "ExtractArticleInput",
    "ExtractArticleOutput",
    "CandidateReport",
    "UsageStatsOutput",
]
