"""Knowledge Card agent: turns a chat answer into a structured study card."""

from __future__ import annotations

import json
import logging
import re

from lca.agents.base import BaseAgent, extract_json
from lca.agents.knowledge_cards.prompts import SYSTEM_PROMPT, TEMPLATE_SECTIONS, build_card_request
from lca.schemas.cards import (
    CardContent,
    CardGenerationRequest,
    GeneratedCard,
    KnowledgeCard,
)
from lca.shared.llm_client import LLMClient

logger = logging.getLogger(__name__)

CARD_TEMPERATURE = 0.3
TITLE_MAX = 50

LEARNING_KEYWORDS = (
    "explain", "what is", "how to", "why", "because", "concept",
    "definition", "example", "learn", "understand", "teach",
    "principle", "theory", "method", "process", "steps",
)

_BULLET_RE = re.compile(r"^(?:[-*•]|\d+\.)\s+")
_EXAMPLE_MARKERS = ("for example", "such as", "like")

DEFAULT_RELATED = ["Related Topic 1", "Related Topic 2", "Related Topic 3"]
DEFAULT_MEMORY_TIPS = [
    "Create a mental image of the concept",
    "Connect to something you already know",
    "Practice explaining it to someone else",
]
DEFAULT_PRACTICE = [
    "How would you explain this concept to a beginner?",
    "What are the practical applications of this concept?",
    "How does this relate to other concepts you know?",
]


def is_learning_content(text: str) -> bool:
    """Whether a message reads like an explanation worth turning into a card."""
    lowered = text.lower()
    return any(k in lowered for k in LEARNING_KEYWORDS)


def heuristic_card_content(message_content: str) -> GeneratedCard:
    """Build a card from the message text alone, without a model call."""
    lines = [line for line in message_content.split("\n") if line.strip()]
    first = lines[0] if lines else ""

    if first:
        title = first[:TITLE_MAX] + ("..." if len(first) > TITLE_MAX else "")
    else:
        title = "Knowledge Card"

    key_points = [
        _BULLET_RE.sub("", line.strip()).strip()
        for line in lines
        if _BULLET_RE.match(line.strip())
    ][:5]

    examples = [
        line.strip()
        for line in lines
        if any(marker in line.lower() for marker in _EXAMPLE_MARKERS)
    ][:3]

    return GeneratedCard(
        title=title,
        content=CardContent(
            core_concept=first or "Core concept not identified",
            key_points=key_points or ["Key point 1", "Key point 2"],
            examples=examples or ["Example 1", "Example 2"],
            related_concepts=DEFAULT_RELATED,
            memory_tips=DEFAULT_MEMORY_TIPS,
            practice_questions=DEFAULT_PRACTICE,
        ),
        tags=["learning", "knowledge"],
    )


class KnowledgeCardAgent(BaseAgent):
    """Generates a card with the model, falling back to the text heuristic."""

    def __init__(self, client: LLMClient, *, model: str | None = None) -> None:
        super().__init__(client)
        self.model = model

    @property
    def name(self) -> str:
        return "Knowledge Cards"

    def get_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def parse_output(self, raw_text: str) -> GeneratedCard:
        data = extract_json(raw_text)
        card = GeneratedCard(**data)
        if not card.title.strip():
            raise ValueError("Card has no title")
        if len(card.title) > TITLE_MAX:
            card.title = card.title[:TITLE_MAX] + "..."
        return card

    async def generate(self, request: CardGenerationRequest, user_id: str) -> KnowledgeCard:
        """Create a card for ``request``; never fails on unparsable model output."""
        if not request.message_content.strip():
            raise ValueError("Message content must not be empty")

        user_message = build_card_request(
            request.message_content, request.template, request.custom_sections,
        )
        try:
            generated = await self._complete_with_retry(
                self.get_system_prompt(),
                user_message,
                self.parse_output,
                model=self.model,
                temperature=CARD_TEMPERATURE,
            )
        except (ValueError, json.JSONDecodeError, KeyError) as exc:
            logger.warning("Card output unusable, using text heuristic: %s", exc)
            generated = heuristic_card_content(request.message_content)
        else:
            # Model sections outside the template stay empty
            allowed = set(TEMPLATE_SECTIONS.get(request.template, TEMPLATE_SECTIONS["basic"]))
            content = generated.content.model_dump()
            for section in content:
                if section != "core_concept" and section not in allowed:
                    content[section] = []
            generated.content = CardContent(**content)

        return KnowledgeCard(
            user_id=user_id,
            title=generated.title,
            content=generated.content,
            source_message_id=request.message_id,
            source_chat_id=request.chat_id,
            tags=generated.tags,
            template=request.template,
        )
