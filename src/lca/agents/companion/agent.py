"""Learning Companion agent: level-adapted tutoring with suggested follow-ups."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, AsyncIterator

from lca.agents.base import BaseAgent
from lca.agents.companion.prompts import build_companion_prompt, build_smart_qa_prompt
from lca.schemas.learning import CompanionReply, HistoryEntry, LearningPreferences
from lca.shared.llm_client import LLMClient

logger = logging.getLogger(__name__)

CHAT_TEMPERATURE = 0.7

_JSON_BLOCK_RE = re.compile(r"```json[\s\S]*?```")


def split_suggested_questions(text: str) -> tuple[str, list[str]]:
    """Pull the first fenced ``json`` block out of a reply.

    Returns the reply without the block (stripped) and the string entries
    of its ``suggested_questions`` list. If there is no block or it does not
    parse, the text is returned unchanged with no suggestions.
    """
    match = _JSON_BLOCK_RE.search(text)
    if not match:
        return text, []

    raw_block = match.group(0)
    body = re.sub(r"^```json\n?", "", raw_block)
    body = re.sub(r"```\s*$", "", body)
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        logger.debug("Suggested-questions block did not parse; keeping raw text")
        return text, []

    questions: list[str] = []
    if isinstance(parsed, dict) and isinstance(parsed.get("suggested_questions"), list):
        questions = [q for q in parsed["suggested_questions"] if isinstance(q, str)]
    return text.replace(raw_block, "", 1).strip(), questions


def _history_messages(history: list[HistoryEntry] | None) -> list[dict[str, Any]]:
    return [{"role": h.role, "content": h.content} for h in history or []]


class CompanionAgent(BaseAgent):
    """Answers questions at the learner's level and proposes three follow-ups."""

    def __init__(self, client: LLMClient, *, model: str | None = None) -> None:
        super().__init__(client)
        self.model = model

    @property
    def name(self) -> str:
        return "Learning Companion"

    def get_system_prompt(self) -> str:
        return build_companion_prompt("high-school", "detailed")

    def parse_output(self, raw_text: str) -> CompanionReply:
        content, questions = split_suggested_questions(raw_text)
        return CompanionReply(content=content, suggested_questions=questions)

    async def stream_reply(
        self,
        question: str,
        level: str = "high-school",
        preferences: LearningPreferences | None = None,
        history: list[HistoryEntry] | None = None,
    ) -> AsyncIterator[str]:
        """Yield the raw reply text (including the JSON block) as it streams."""
        style = preferences.preferred_style if preferences else "detailed"
        messages = _history_messages(history) + [{"role": "user", "content": question}]
        async for chunk in self.client.stream_completion(
            messages=messages,
            system=build_companion_prompt(level, style),
            model=self.model,
            temperature=CHAT_TEMPERATURE,
        ):
            yield chunk

    async def reply(
        self,
        question: str,
        level: str = "high-school",
        preferences: LearningPreferences | None = None,
        history: list[HistoryEntry] | None = None,
        *,
        on_chunk: Any | None = None,
    ) -> CompanionReply:
        """Collect the streamed reply and split out the suggested questions."""
        parts: list[str] = []
        async for chunk in self.stream_reply(question, level, preferences, history):
            parts.append(chunk)
            if on_chunk:
                on_chunk(chunk)
        return self.parse_output("".join(parts))

    async def smart_answer(
        self,
        question: str,
        level: str = "high-school",
        history: list[HistoryEntry] | None = None,
    ) -> str:
        """Non-streaming answer ending with a Learning Extension section."""
        messages = _history_messages(history) + [{"role": "user", "content": question}]
        return await self.client.chat_completion(
            messages=messages,
            system=build_smart_qa_prompt(level),
            model=self.model,
            temperature=CHAT_TEMPERATURE,
        )
