from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from bs4 import Tag

    from pagedigest.errors import ExtractionError

TextSource = Literal["selection", "article"]


def _str_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [s for s in value if isinstance(s, str) and s]


class ExclusionRules(BaseModel):
    """Selectors that remove noise from extracted text.

    ``self`` drops elements that match directly; ``ancestors`` drops
    everything inside a matching container. Both default to empty lists, so
    a partially specified rule set never needs special-casing.
    """

    model_config = ConfigDict(populate_by_name=True)

    self_: list[str] = Field(default=[], alias="self")
    ancestors: list[str] = []

    @classmethod
    def from_json_obj(cls, data: object) -> ExclusionRules:
        """Lenient load for persisted rule sets: junk becomes empty lists."""
        if not isinstance(data, dict):
            return cls()
        return cls(self_=_str_list(data.get("self")), ancestors=_str_list(data.get("ancestors")))

    def to_json_obj(self) -> dict[str, list[str]]:
        return self.model_dump(by_alias=True)


@dataclass
class ContainerCandidate:
    """A region found by one container query, scored against the whole page."""

    query: str
    node: Tag
    raw_length: int
    percent: int


@dataclass
class Article:
    """Successful article extraction.

    ``container`` is set only when a single container was selected; combined
    extractions list every contributing node in ``containers``.
    """

    text: str
    container: Tag | None = None
    title: str | None = None
    containers: list[Tag] = field(default_factory=list)


@dataclass
class ExtractionFailure:
    error: ExtractionError
    actual_length: int | None = None
    min_length: int | None = None
    source: TextSource | None = None


@dataclass
class TextToDigest:
    text: str
    source: TextSource
    container: Tag | None = None
    title: str | None = None


ExtractionResult = Article | ExtractionFailure
