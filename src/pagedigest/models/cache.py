from __future__ import annotations

from pydantic import BaseModel


class CacheEntry(BaseModel):
    """One computed digest, keyed by ``"<mode>:<input text>"``."""

    key: str
    result: str
    timestamp: int = 0  # Unix epoch milliseconds of the last write

    def to_json_obj(self) -> dict[str, object]:
        # The key is the mapping key in the persisted object, not a field.
        return {"result": self.result, "timestamp": self.timestamp}
