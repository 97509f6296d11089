"""Async OpenAI API wrapper used for roadmap generation.

The text-generation endpoint is treated as a black box: a system prompt
and a user message go in, a JSON document comes out.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import re
from collections.abc import Callable
from typing import Any

from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, RateLimitError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
MAX_TOKENS = 8_192

# Retry settings for rate-limit (429) and transient connection errors
_MAX_RETRIES = 6
_BASE_DELAY = 5  # seconds, minimum floor for exponential backoff

TokensCallback = Callable[[int, int], None]
"""Called with (input_tokens, output_tokens) when a completion finishes."""


def _parse_retry_after(exc: RateLimitError) -> float | None:
    """Extract the suggested retry delay from a rate limit error.

    Checks the ``Retry-After`` header first, then the "try again in Xs / Xms"
    hint in the error message.  Returns seconds, or None if not found.
    """
    try:
        headers = exc.response.headers  # type: ignore[union-attr]
        if retry_after := headers.get("retry-after"):
            return float(retry_after)
    except (AttributeError, TypeError, ValueError):
        pass

    m = re.search(r"try again in (\d+(?:\.\d+)?)\s*(ms|s)\b", str(exc), re.IGNORECASE)
    if m:
        value = float(m.group(1))
        return value / 1000 if m.group(2).lower() == "ms" else value

    return None


class AIClient:
    """Thin async wrapper around the OpenAI SDK exposing ``simple_completion``."""

    def __init__(self, api_key: str | None = None, *, model: str = DEFAULT_MODEL) -> None:
        self._client = AsyncOpenAI(api_key=api_key)
        self.model = model

    async def _call_with_retry(self, **kwargs: Any) -> Any:
        """Call chat.completions.create with exponential backoff.

        Waits at least as long as the suggested retry-after time and adds
        ±25% jitter.  Oversized requests fail immediately.
        """
        for attempt in range(_MAX_RETRIES):
            try:
                return await self._client.chat.completions.create(**kwargs)
            except RateLimitError as exc:
                msg = str(exc).lower()
                if "request too large" in msg or "context_length_exceeded" in msg:
                    logger.error("Request exceeds token limit (not retryable): %s", exc)
                    raise
                if attempt == _MAX_RETRIES - 1:
                    raise

                backoff = _BASE_DELAY * (2 ** attempt)
                suggested = _parse_retry_after(exc)
                base_delay = max(suggested or 0.0, backoff)
                jitter = random.uniform(-0.25 * base_delay, 0.25 * base_delay)
                delay = max(1.0, base_delay + jitter)

                logger.warning(
                    "Rate limited (429), retrying in %.1fs (attempt %d/%d): %s",
                    delay, attempt + 1, _MAX_RETRIES, exc,
                )
                await asyncio.sleep(delay)
            except (APIConnectionError, APITimeoutError) as exc:
                if attempt == _MAX_RETRIES - 1:
                    raise
                backoff = _BASE_DELAY * (2 ** min(attempt, 3))
                jitter = random.uniform(-0.25 * backoff, 0.25 * backoff)
                delay = max(2.0, backoff + jitter)
                logger.warning(
                    "Connection error, retrying in %.1fs (attempt %d/%d): %s",
                    delay, attempt + 1, _MAX_RETRIES, exc,
                )
                await asyncio.sleep(delay)

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        """Single request/response with no tools.

        When ``json_mode`` is True (default), the API guarantees the
        response is valid JSON.
        """
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": MAX_TOKENS,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_message},
            ],
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self._call_with_retry(**kwargs)
        usage = getattr(response, "usage", None)
        if on_tokens and usage:
            on_tokens(getattr(usage, "prompt_tokens", 0), getattr(usage, "completion_tokens", 0))
        return response.choices[0].message.content or ""


# ======================================================================
# Dry-run mock client (zero API calls)
# ======================================================================

_DRY_RUN_ROADMAP = json.dumps({
    "summary": "Dry-run roadmap: harden the core, then ship features and AI capabilities.",
    "phases": [
        {
            "name": "Phase 1: Core Infrastructure Enhancement",
            "description": "Focus on improving the core infrastructure and essential features",
            "duration": "3 weeks",
            "priority": "high",
            "tasks": [
                "Optimize authentication system",
                "Refactor core UI components for better reusability",
                "Improve database query performance",
                "Implement comprehensive error handling",
            ],
        },
        {
            "name": "Phase 2: Feature Development",
            "description": "Develop key features and functionality based on user feedback",
            "duration": "4 weeks",
            "priority": "medium",
            "dependencies": ["Phase 1: Core Infrastructure Enhancement"],
            "tasks": [
                "Implement advanced user management",
                "Create enhanced reporting system",
                "Build real-time notification system",
                "Add data visualization components",
            ],
        },
        {
            "name": "Phase 3: Optimization & Testing",
            "description": "Optimize performance and conduct thorough testing",
            "duration": "2 weeks",
            "priority": "high",
            "dependencies": ["Phase 2: Feature Development"],
            "tasks": [
                "Performance optimization across all modules",
                "Comprehensive end-to-end testing",
                "Security audit and improvements",
            ],
        },
    ],
    "focusAreas": ["Performance optimization", "User experience improvements"],
    "risks": [
        {
            "description": "Performance issues with real-time features",
            "mitigation": "Implement thorough performance testing early in development",
            "impact": "high",
        },
    ],
})


class DryRunClient:
    """Drop-in replacement for AIClient that returns a canned roadmap."""

    model = "dry-run"

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        logger.info("[dry-run] Skipping completion request (%d chars)", len(user_message))
        return _DRY_RUN_ROADMAP
