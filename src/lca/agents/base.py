"""Base agent ABC: the completion-then-parse pattern every agent follows."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, TypeVar

from pydantic import BaseModel

from lca.shared.llm_client import LLMClient, TokensCallback

logger = logging.getLogger(__name__)

T = TypeVar("T")

_JSON_RETRY_MSG = (
    "Your answer is helpful, but I need the output as a single "
    "JSON object (no markdown, no explanation, just raw JSON) "
    "matching the schema described in your instructions. "
    "Please re-format your response now."
)


class BaseAgent(ABC):
    """Abstract base class for all learning-companion agents.

    Subclasses implement:
    - ``name``: human-readable agent name
    - ``get_system_prompt()``: returns the default system prompt string
    - ``parse_output(raw_text)``: parses the model's text into a Pydantic model
    """

    def __init__(self, client: LLMClient) -> None:
        self.client = client

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for progress display."""

    @abstractmethod
    def get_system_prompt(self) -> str:
        """Return the system prompt for this agent."""

    @abstractmethod
    def parse_output(self, raw_text: str) -> BaseModel:
        """Parse the model's final text response into a Pydantic model."""

    async def run(self, user_message: str, **completion_kwargs: Any) -> BaseModel:
        """Single completion with the default system prompt, parsed with one retry."""
        return await self._complete_with_retry(
            self.get_system_prompt(), user_message, self.parse_output, **completion_kwargs,
        )

    async def _complete_with_retry(
        self,
        system: str,
        user_message: str,
        parse_fn: Callable[[str], T],
        *,
        on_tokens: TokensCallback | None = None,
        **completion_kwargs: Any,
    ) -> T:
        """Call simple_completion, parse, and retry once if JSON parsing fails."""
        raw = await self.client.simple_completion(
            system=system,
            user_message=user_message,
            on_tokens=on_tokens,
            **completion_kwargs,
        )
        logger.debug("Agent %s raw output:\n%s", self.name, raw[:500])
        try:
            return parse_fn(raw)
        except (ValueError, json.JSONDecodeError, KeyError) as err:
            logger.warning(
                "Agent %s output was not valid JSON, requesting re-format. Error: %s",
                self.name, err,
            )

        # Retry: feed the original output back and ask for JSON
        retry_msg = f"{user_message}\n\nAssistant's previous response:\n{raw}\n\n{_JSON_RETRY_MSG}"
        raw_retry = await self.client.simple_completion(
            system=system,
            user_message=retry_msg,
            on_tokens=on_tokens,
            **completion_kwargs,
        )
        logger.debug("Agent %s retry output:\n%s", self.name, raw_retry[:500])
        return parse_fn(raw_retry)


def extract_json(text: str) -> dict[str, Any]:
    """Extract a JSON object from text that may contain markdown fences."""
    text = text.strip()

    # 1. Try direct parse (clean JSON response)
    if text.startswith("{"):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            # Might have trailing text; try raw_decode
            try:
                obj, _ = json.JSONDecoder().raw_decode(text)
                return obj
            except json.JSONDecodeError:
                pass

    # 2. Look for ```json ... ``` or ``` ... ``` fenced blocks
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if match:
        return json.loads(match.group(1).strip())

    # 3. Find the first { and try to parse a JSON object starting there
    try:
        start = text.index("{")
        obj, _ = json.JSONDecoder().raw_decode(text, idx=start)
        return obj
    except (ValueError, json.JSONDecodeError):
        pass

    raise ValueError(
        f"Could not extract JSON from model response (length={len(text)}). "
        f"First 300 chars: {text[:300]!r}"
    )


def extract_json_array(text: str) -> list[Any]:
    """Extract the first JSON array from text (greedy ``[ ... ]`` span)."""
    match = re.search(r"\[[\s\S]*\]", text)
    if not match:
        raise ValueError(f"No JSON array found in model response (length={len(text)})")
    value = json.loads(match.group(0))
    if not isinstance(value, list):
        raise ValueError("Matched JSON is not an array")
    return value
