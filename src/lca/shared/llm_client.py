"""Async OpenAI API wrapper used by every learning-companion agent.

Three call shapes are supported:

- ``simple_completion``: one system prompt plus one user message.
- ``chat_completion``: a full message history (tutoring chat).
- ``stream_completion``: same as ``chat_completion`` but yields text
  deltas as they arrive (companion chat, Deep Dive answers).
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import re
from typing import Any, AsyncIterator, Callable

from openai import AsyncOpenAI, APIConnectionError, APITimeoutError, RateLimitError

logger = logging.getLogger(__name__)

# Default model for agents that don't receive an explicit one
DEFAULT_MODEL = "gpt-4o-mini"
MAX_TOKENS = 4_000

# Retry settings for rate-limit (429) errors
_RATE_LIMIT_MAX_RETRIES = 8
_RATE_LIMIT_BASE_DELAY = 5  # seconds, minimum floor for exponential backoff


def _parse_retry_after(exc: RateLimitError) -> float | None:
    """Extract the suggested retry delay from an OpenAI rate limit error.

    Checks the ``Retry-After`` header first, then falls back to parsing
    the "Please try again in Xs / Xms" substring from the error message.
    Returns seconds as a float, or None if not found.
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


TokensCallback = Callable[[int, int], None]
"""Called with (input_tokens, output_tokens) when a completion finishes."""


class LLMClient:
    """Thin async wrapper around the OpenAI SDK."""

    def __init__(self, api_key: str | None = None, model: str = DEFAULT_MODEL) -> None:
        self._client = AsyncOpenAI(api_key=api_key or None)
        self.model = model

    async def _call_with_retry(self, **kwargs: Any) -> Any:
        """Call chat.completions.create with exponential backoff on 429 errors.

        Waits at least as long as OpenAI's suggested retry-after time (parsed
        from the error message or header), uses exponential backoff as a floor,
        and adds ±25% jitter.

        Fails immediately if the error indicates the request itself exceeds
        the token limit (retrying won't help; the payload must shrink).
        """
        for attempt in range(_RATE_LIMIT_MAX_RETRIES):
            try:
                return await self._client.chat.completions.create(**kwargs)
            except RateLimitError as exc:
                msg = str(exc).lower()
                if "request too large" in msg or "context_length_exceeded" in msg:
                    logger.error(
                        "Request exceeds token limit (not retryable): %s", exc,
                    )
                    raise
                if attempt == _RATE_LIMIT_MAX_RETRIES - 1:
                    raise

                backoff = _RATE_LIMIT_BASE_DELAY * (2 ** attempt)
                suggested = _parse_retry_after(exc)
                base_delay = max(suggested or 0.0, backoff)
                jitter = random.uniform(-0.25 * base_delay, 0.25 * base_delay)
                delay = max(1.0, base_delay + jitter)

                logger.warning(
                    "Rate limited (429), retrying in %.1fs (attempt %d/%d, "
                    "suggested=%.1fs, backoff=%ds): %s",
                    delay, attempt + 1, _RATE_LIMIT_MAX_RETRIES,
                    suggested or 0.0, backoff, exc,
                )
                await asyncio.sleep(delay)
            except (APIConnectionError, APITimeoutError) as exc:
                if attempt == _RATE_LIMIT_MAX_RETRIES - 1:
                    raise
                # Transient network / TLS errors: short exponential backoff,
                # capped at ~40 s, with ±25% jitter.
                backoff = _RATE_LIMIT_BASE_DELAY * (2 ** min(attempt, 3))
                jitter = random.uniform(-0.25 * backoff, 0.25 * backoff)
                delay = max(2.0, backoff + jitter)
                logger.warning(
                    "Connection error, retrying in %.1fs (attempt %d/%d): %s",
                    delay, attempt + 1, _RATE_LIMIT_MAX_RETRIES, exc,
                )
                await asyncio.sleep(delay)

    def _request_kwargs(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None,
        temperature: float | None,
        max_tokens: int | None,
        json_mode: bool,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model or self.model,
            "max_tokens": max_tokens or MAX_TOKENS,
            "messages": messages,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        return kwargs

    # ------------------------------------------------------------------
    # Simple (single-turn) completion
    # ------------------------------------------------------------------

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        """Single request/response.

        When ``json_mode`` is True (default), the OpenAI API guarantees
        the response is valid JSON.
        """
        return await self.chat_completion(
            messages=[{"role": "user", "content": user_message}],
            system=system,
            json_mode=json_mode,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            on_tokens=on_tokens,
        )

    # ------------------------------------------------------------------
    # Multi-turn completion
    # ------------------------------------------------------------------

    async def chat_completion(
        self,
        *,
        messages: list[dict[str, Any]],
        system: str | None = None,
        json_mode: bool = False,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        """Send a message history and return the assistant text."""
        oai_messages: list[dict[str, Any]] = []
        if system:
            oai_messages.append({"role": "system", "content": system})
        oai_messages.extend(messages)

        response = await self._call_with_retry(
            **self._request_kwargs(
                oai_messages,
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
                json_mode=json_mode,
            )
        )
        usage = getattr(response, "usage", None)
        if on_tokens and usage:
            on_tokens(getattr(usage, "prompt_tokens", 0), getattr(usage, "completion_tokens", 0))
        return response.choices[0].message.content or ""

    # ------------------------------------------------------------------
    # Streaming completion
    # ------------------------------------------------------------------

    async def stream_completion(
        self,
        *,
        messages: list[dict[str, Any]],
        system: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        """Yield text deltas from a streamed completion.

        Only the initial request is retried; once the stream has started,
        errors propagate to the caller.
        """
        oai_messages: list[dict[str, Any]] = []
        if system:
            oai_messages.append({"role": "system", "content": system})
        oai_messages.extend(messages)

        kwargs = self._request_kwargs(
            oai_messages,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=False,
        )
        kwargs["stream"] = True
        stream = await self._call_with_retry(**kwargs)

        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            text = getattr(delta, "content", None)
            if text:
                yield text


# ======================================================================
# Dry-run mock client, zero API calls
# ======================================================================

_DRY_RUN_JSON: dict[str, str] = {
    "companion": (
        "Photosynthesis is how plants turn light, water and carbon dioxide "
        "into sugar and oxygen.\n\n"
        "```json\n"
        + json.dumps({"suggested_questions": [
            "What happens during the Calvin cycle?",
            "Why do leaves change color in autumn?",
            "How do chloroplasts capture light?",
        ]})
        + "\n```"
    ),
    "smart_qa": (
        "Newton's first law says an object keeps its state of motion unless a "
        "force acts on it.\n\n---\n**Learning Extension:**\n"
        "- 🤔 **Curious Question:** Why do you lurch forward when a bus brakes?\n"
        "- 📚 **Deeper Dive:** Explore Newton's second and third laws.\n"
        "- 🌍 **Real-World Connection:** Seatbelts exist because of inertia."
    ),
    "card": json.dumps({
        "title": "Photosynthesis",
        "content": {
            "core_concept": "Plants convert light energy into chemical energy.",
            "key_points": ["Happens in chloroplasts", "Produces oxygen"],
            "examples": ["A leaf in sunlight"],
            "related_concepts": ["Cellular respiration"],
            "memory_tips": ["Photo = light, synthesis = making"],
            "practice_questions": ["What are the inputs of photosynthesis?"],
        },
        "tags": ["biology", "plants"],
    }),
    "comparison": json.dumps({
        "summary": "Version B is clearer and more actionable.",
        "key_differences": ["B uses a concrete call to action"],
        "strengths": {"A": ["Friendly tone"], "B": ["Clear structure"]},
        "weaknesses": {"A": ["Vague ending"], "B": ["Slightly longer"]},
        "recommendation": "Choose Version B for its clarity.",
        "confidence": 0.82,
    }),
    "deep_dive_questions": json.dumps({
        "questions": [
            {"id": "1", "question": "What does this term mean?", "category": "Definition"},
            {"id": "2", "question": "Can you give an example?", "category": "Example"},
            {"id": "3", "question": "Where is this used?", "category": "Context"},
        ],
    }),
    "deep_dive_answer": "In short, the selected passage describes the key idea in the answer above.",
    "topics": json.dumps({
        "topics": [
            {"topic": "Calvin Cycle", "mastery_level": "gap", "confidence": 0.7,
             "evidence_count": 2, "related_topics": ["Photosynthesis"]},
        ],
    }),
    "portrait": json.dumps({
        "summary": "An inquisitive learner who prefers worked examples.",
        "preferred_style": "example-driven",
        "strengths": "Asks precise follow-up questions.",
        "challenges": "Multi-step processes such as the Calvin cycle.",
        "pacing": "Short, frequent sessions.",
        "recommendations": "Review the Calvin cycle with a diagram.",
        "next_questions": ["What is RuBisCO?", "How is ATP produced?", "What limits photosynthesis?"],
    }),
    "tag": json.dumps({
        "description": "AI acts as a patient specialist",
        "prompt": "You are a patient specialist who explains each step.",
    }),
    "ab_response": "Here is a clear and helpful answer. It covers the key points. It gives an example. It ends with a summary.",
}


class DryRunClient:
    """Drop-in replacement for LLMClient that makes zero API calls."""

    model = "dry-run"

    async def simple_completion(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        return _DRY_RUN_JSON[self._detect_agent(system)]

    async def chat_completion(
        self,
        *,
        messages: list[dict[str, Any]],
        system: str | None = None,
        json_mode: bool = False,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        return _DRY_RUN_JSON[self._detect_agent(system or "")]

    async def stream_completion(
        self,
        *,
        messages: list[dict[str, Any]],
        system: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        text = _DRY_RUN_JSON[self._detect_agent(system or "")]
        for word in re.split(r"(\s+)", text):
            if word:
                yield word

    @staticmethod
    def _detect_agent(system: str) -> str:
        """Guess which canned response to return from the system prompt."""
        if "Learning Extension" in system:
            return "smart_qa"
        if "Learning Companion" in system:
            return "companion"
        if "Knowledge Card" in system:
            return "card"
        if "A/B testing analyst" in system:
            return "comparison"
        if '"questions"' in system:
            return "deep_dive_questions"
        if "selected text" in system:
            return "deep_dive_answer"
        if "educational analyst" in system:
            return "topics"
        if "learning science advisor" in system:
            return "portrait"
        if "prompt tag" in system:
            return "tag"
        return "ab_response"
