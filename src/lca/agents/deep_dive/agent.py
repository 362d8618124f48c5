"""Deep Dive agent: follow-up questions and answers about a selected passage."""

from __future__ import annotations

import logging
import re
from typing import Any, AsyncIterator

from lca.agents.base import BaseAgent, extract_json
from lca.agents.deep_dive.prompts import (
    ANSWER_SYSTEM_PROMPT,
    SUGGESTION_PROMPTS,
    build_answer_request,
    build_suggestion_request,
)
from lca.schemas.deep_dive import ContextType, DeepDiveQuestion, DeepDiveSuggestions
from lca.shared.llm_client import LLMClient

logger = logging.getLogger(__name__)

SUGGEST_TEMPERATURE = 0.7
SUGGEST_MAX_TOKENS = 300
ANSWER_TEMPERATURE = 0.7
ANSWER_MAX_TOKENS = 500

_CODE_RE = re.compile(r"```[\s\S]*?```|`[^`]+`")
_DATA_RE = re.compile(r"\d+%|\$\d+|\d+\.\d+")
_CONCEPT_RE = re.compile(r"^[A-Z][a-z]+(\s[A-Z][a-z]+)*$")


def detect_context_type(selected: str) -> ContextType:
    """Classify a selection as code, data, a Title Case concept, or general text."""
    if _CODE_RE.search(selected):
        return "code"
    if _DATA_RE.search(selected):
        return "data"
    if _CONCEPT_RE.match(selected.strip()):
        return "concept"
    return "general"


class DeepDiveAgent(BaseAgent):
    def __init__(self, client: LLMClient, *, model: str | None = None) -> None:
        super().__init__(client)
        self.model = model
        self._context_type: ContextType = "general"

    @property
    def name(self) -> str:
        return "Deep Dive"

    def get_system_prompt(self) -> str:
        return SUGGESTION_PROMPTS[self._context_type]

    def parse_output(self, raw_text: str) -> DeepDiveSuggestions:
        data = extract_json(raw_text)
        questions = data.get("questions")
        if not isinstance(questions, list):
            raise ValueError("Response has no 'questions' list")
        parsed = [
            DeepDiveQuestion(**q)
            for q in questions
            if isinstance(q, dict) and str(q.get("question") or "").strip()
        ]
        return DeepDiveSuggestions(context_type=self._context_type, questions=parsed)

    async def suggest(
        self,
        selected: str,
        original_content: str,
        context_type: ContextType | None = None,
        *,
        original_question: str = "",
        model: str | None = None,
    ) -> DeepDiveSuggestions:
        """Suggest 3-4 questions about ``selected`` in the light of its message."""
        if not selected.strip():
            raise ValueError("Selected text must not be empty")
        self._context_type = context_type or detect_context_type(selected)
        logger.debug("Deep Dive context type: %s", self._context_type)
        return await self._complete_with_retry(
            self.get_system_prompt(),
            build_suggestion_request(selected, original_content, original_question),
            self.parse_output,
            model=model or self.model,
            temperature=SUGGEST_TEMPERATURE,
            max_tokens=SUGGEST_MAX_TOKENS,
        )

    async def stream_answer(
        self,
        selected: str,
        original_content: str,
        question: str,
        *,
        model: str | None = None,
    ) -> AsyncIterator[str]:
        async for chunk in self.client.stream_completion(
            messages=[{"role": "user", "content": build_answer_request(selected, original_content, question)}],
            system=ANSWER_SYSTEM_PROMPT,
            model=model or self.model,
            temperature=ANSWER_TEMPERATURE,
            max_tokens=ANSWER_MAX_TOKENS,
        ):
            yield chunk

    async def answer(
        self,
        selected: str,
        original_content: str,
        question: str,
        *,
        model: str | None = None,
        on_chunk: Any | None = None,
    ) -> str:
        parts: list[str] = []
        async for chunk in self.stream_answer(selected, original_content, question, model=model):
            parts.append(chunk)
            if on_chunk:
                on_chunk(chunk)
        return "".join(parts)
