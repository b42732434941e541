"""OpenAI Responses API summarizer.

``OpenAISummarizer`` is the transformation capability handed to the digest
orchestrator: ``await summarizer(text, mode)`` returns the model's raw output
text. Every failure is raised as a classified ``PageDigestError``; nothing
here retries. The summarizer receives an ``httpx.AsyncClient`` via
constructor injection; the server lifespan owns the client lifecycle.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import structlog

from pagedigest.errors import ErrorCode, PageDigestError
from pagedigest.models.usage import ModelOption

if TYPE_CHECKING:
    from pagedigest.config import DigestSettings, OpenAISettings
    from pagedigest.usage import UsageTracker

log = structlog.get_logger()

MODE_LARGE = "summary_large"
MODE_SMALL = "summary_small"
MODES: tuple[str, ...] = (MODE_LARGE, MODE_SMALL)

DEFAULT_PROMPTS: dict[str, str] = {
    MODE_LARGE: (
        "You will receive INPUT as article text. Summarize and simplify the content to "
        "approximately 50% of the original length. Make the language clearer and more direct "
        "while staying in the SAME language as input. CRITICAL: Do NOT change facts, numbers, "
        "names, quotes, or the actual meaning/details of the content. If the text contains "
        "direct quotes inside quotation marks, keep that quoted text VERBATIM. Preserve all "
        "factual information, statistics, proper nouns, and direct quotes exactly as they "
        "appear. Maintain paragraph structure where appropriate. Return ONLY the simplified "
        "text without any formatting, code blocks, or JSON."
    ),
    MODE_SMALL: (
        "You will receive INPUT as article text. Create a concise summary at approximately 20% "
        "of the original length while staying in the SAME language as input. Focus on the most "
        "important points and key facts. CRITICAL: Do NOT change facts, numbers, names, or core "
        "meaning. Preserve important quotes, statistics, and proper nouns exactly as they "
        "appear. Condense the content aggressively to achieve the 20% length target while "
        "maintaining readability. Return ONLY the summary text without any formatting, code "
        "blocks, or JSON."
    ),
}

MAX_OUTPUT_TOKENS: dict[str, int] = {MODE_LARGE: 4000, MODE_SMALL: 2000}

# Sampling temperature per simplification level (non-reasoning models only).
SIMPLIFICATION_LEVELS: dict[str, float] = {
    "Conservative": 0.1,
    "Balanced": 0.2,
    "Aggressive": 0.4,
}

# Pricing source: https://openai.com/api/pricing/ (as of 2025-12-18)
MODEL_OPTIONS: dict[str, ModelOption] = {
    "gpt-5-nano": ModelOption(
        name="GPT-5 Nano",
        api_model="gpt-5-nano",
        description="Ultra-affordable latest generation - Best value for most articles",
        input_per_1m=0.05,
        output_per_1m=0.40,
        recommended=True,
    ),
    "gpt-5-mini": ModelOption(
        name="GPT-5 Mini",
        api_model="gpt-5-mini",
        description="Better quality, still very affordable",
        input_per_1m=0.25,
        output_per_1m=2.00,
    ),
    "gpt-4.1-nano-priority": ModelOption(
        name="GPT-4.1 Nano Priority",
        api_model="gpt-4.1-nano",
        description="Faster processing - Cheaper than regular GPT-5 Mini",
        input_per_1m=0.20,
        output_per_1m=0.80,
        priority=True,
    ),
    "gpt-5-mini-priority": ModelOption(
        name="GPT-5 Mini Priority",
        api_model="gpt-5-mini",
        description="Better quality + faster processing",
        input_per_1m=0.45,
        output_per_1m=3.60,
        priority=True,
    ),
    "gpt-5.2-priority": ModelOption(
        name="GPT-5.2 Priority",
        api_model="gpt-5.2",
        description="Premium quality + fastest processing (most expensive)",
        input_per_1m=2.50,
        output_per_1m=20.00,
        priority=True,
    ),
}

_LINE_SEPARATORS = str.maketrans({"\u2028": " ", "\u2029": " "})


def resolve_model(model_id: str) -> ModelOption:
    """Catalogue entry for ``model_id``; unknown ids pass through unpriced."""
    option = MODEL_OPTIONS.get(model_id)
    if option is not None:
        return option
    return ModelOption(
        name=model_id,
        api_model=model_id,
        description="Custom model",
        input_per_1m=0.0,
        output_per_1m=0.0,
    )


def build_http_client(settings: OpenAISettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        base_url=settings.base_url,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"Accept": "application/json"},
    )


def extract_output_text(payload: dict) -> str:
    """Pull the generated text out of a Responses or Chat Completions payload."""
    output_text = payload.get("output_text")
    if isinstance(output_text, str):
        return output_text

    output = payload.get("output")
    if isinstance(output, list):
        parts = [
            part["text"]
            for message in output
            if isinstance(message, dict) and isinstance(message.get("content"), list)
            for part in message["content"]
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ]
        if parts:
            return "".join(parts)

    choices = payload.get("choices")
    if isinstance(choices, list):
        return "\n".join(
            (choice.get("message") or {}).get("content") or "" for choice in choices
        )
    return ""


def _incomplete_message(payload: dict) -> str:
    reason = (payload.get("incomplete_details") or {}).get("reason") or "unknown"
    if reason != "max_output_tokens":
        return "API response incomplete"
    details = (payload.get("usage") or {}).get("output_tokens_details") or {}
    reasoning_tokens = details.get("reasoning_tokens") or 0
    if reasoning_tokens > 0:
        return (
            f"Model used all tokens on reasoning ({reasoning_tokens} tokens). "
            "Try a different model or a smaller input."
        )
    return "Response exceeded max_output_tokens limit. Try selecting less text."


def _status_error(response: httpx.Response) -> PageDigestError:
    status = response.status_code
    if status == 401:
        return PageDigestError(
            code=ErrorCode.UNAUTHORIZED,
            message="Unauthorized (401). The OpenAI API key was rejected.",
            suggestion="Set a valid key in PAGEDIGEST__OPENAI__API_KEY.",
            recoverable=False,
            status=status,
        )
    if status == 429:
        return PageDigestError(
            code=ErrorCode.RATE_LIMITED,
            message="Rate limited by API (429).",
            suggestion="Try again in a minute.",
            recoverable=True,
            status=status,
        )
    if status == 400:
        return PageDigestError(
            code=ErrorCode.BAD_REQUEST,
            message="Bad request (400). The API could not process the text.",
            suggestion="Try selecting less text.",
            recoverable=False,
            status=status,
        )
    return PageDigestError(
        code=ErrorCode.TRANSFORM_FAILED,
        message=f"HTTP {status} from the summarization API",
        suggestion="Check your network or try again.",
        recoverable=True,
        status=status,
    )


class OpenAISummarizer:
    """Summarizes text through the OpenAI Responses API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        openai: OpenAISettings,
        digest: DigestSettings,
        usage: UsageTracker | None = None,
    ) -> None:
        self._client = client
        self._openai = openai
        self._digest = digest
        self._usage = usage
        self.model = resolve_model(digest.model)

    def prompt_for(self, mode: str) -> str:
        custom = self._digest.prompts.get(mode)
        return custom or DEFAULT_PROMPTS.get(mode) or DEFAULT_PROMPTS[MODE_LARGE]

    def build_request(self, text: str, mode: str) -> dict:
        """Request body for ``POST /responses``."""
        api_model = self.model.api_model
        body: dict = {
            "model": api_model,
            "max_output_tokens": MAX_OUTPUT_TOKENS.get(mode, MAX_OUTPUT_TOKENS[MODE_LARGE]),
            "instructions": self.prompt_for(mode),
            "input": text.translate(_LINE_SEPARATORS),
        }
        if api_model.startswith("gpt-5"):
            # Reasoning models: keep reasoning minimal, they reject temperature.
            body["reasoning"] = {"effort": "minimal"}
        else:
            body["temperature"] = SIMPLIFICATION_LEVELS[self._digest.simplification]
        if self.model.priority:
            body["service_tier"] = "priority"
        return body

    async def __call__(self, text: str, mode: str) -> str:
        api_key = self._openai.api_key.get_secret_value() if self._openai.api_key else ""
        if not api_key:
            raise PageDigestError(
                code=ErrorCode.API_KEY_MISSING,
                message="OpenAI API key missing.",
                suggestion="Set PAGEDIGEST__OPENAI__API_KEY or openai.api_key in pagedigest.yaml.",
                recoverable=False,
                status=401,
            )

        body = self.build_request(text, mode)
        log.info("summarizer_request", model=body["model"], mode=mode, input_length=len(text))

        try:
            response = await self._client.post(
                "/responses",
                json=body,
                headers={"Authorization": f"Bearer {api_key}"},
            )
        except httpx.TimeoutException as exc:
            raise PageDigestError(
                code=ErrorCode.TRANSFORM_FAILED,
                message="Request timeout",
                suggestion="Check your network or try again.",
                recoverable=True,
                status=0,
            ) from exc
        except httpx.HTTPError as exc:
            raise PageDigestError(
                code=ErrorCode.TRANSFORM_FAILED,
                message=f"Network error calling the summarization API: {exc}",
                suggestion="Check your network or try again.",
                recoverable=True,
                status=0,
            ) from exc

        if not response.is_success:
            raise _status_error(response)

        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise PageDigestError(
                code=ErrorCode.TRANSFORM_FAILED,
                message="The summarization API returned a non-JSON body.",
                suggestion="Try again later.",
                recoverable=True,
                status=response.status_code,
            ) from exc

        log.info("summarizer_response", status=payload.get("status"), usage=payload.get("usage"))
        if self._usage is not None:
            self._usage.record(payload.get("usage"))

        if payload.get("status") == "incomplete":
            raise PageDigestError(
                code=ErrorCode.INCOMPLETE_RESPONSE,
                message=_incomplete_message(payload),
                suggestion="Try a different model or a shorter input.",
                recoverable=False,
                status=400,
            )

        output = extract_output_text(payload)
        if not output:
            raise PageDigestError(
                code=ErrorCode.EMPTY_RESPONSE,
                message="No output from API. The model returned an empty response.",
                suggestion="Try again or pick a different model.",
                recoverable=True,
                status=400,
            )
        return output
