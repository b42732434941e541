from __future__ import annotations

from enum import StrEnum


class ExtractionError(StrEnum):
    """Tagged extraction outcomes. Returned to callers, never raised."""

    NO_CONTAINER = "no_container"
    NO_TEXT = "no_text"
    ARTICLE_TOO_SHORT = "article_too_short"
    SELECTION_TOO_SHORT = "selection_too_short"


class ErrorCode(StrEnum):
    API_KEY_MISSING = "API_KEY_MISSING"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"
    BAD_REQUEST = "BAD_REQUEST"
    INCOMPLETE_RESPONSE = "INCOMPLETE_RESPONSE"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    TRANSFORM_FAILED = "TRANSFORM_FAILED"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    DOMAIN_DISABLED = "DOMAIN_DISABLED"
    INVALID_INPUT = "INVALID_INPUT"


class PageDigestError(Exception):
    """Raised by the summarizer and tool handlers for expected failures.

    Caught by server.py and serialised into the MCP error response.
    The digest orchestrator lets it propagate untouched, so a failed
    summarization is never cached.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable
        self.status = status

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }
