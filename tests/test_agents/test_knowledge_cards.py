"""Tests for the Knowledge Card agent and its text heuristic."""

from __future__ import annotations

import json
import re
from unittest.mock import AsyncMock

import pytest

from conftest import USER_ID, mock_openai_response
from lca.agents.knowledge_cards.agent import KnowledgeCardAgent, heuristic_card_content, is_learning_content
from lca.agents.knowledge_cards.prompts import build_card_request
from lca.schemas.cards import CardGenerationRequest, new_card_id
from lca.shared.llm_client import DryRunClient, LLMClient

MESSAGE = """\
Photosynthesis is how plants make food from light.
- Happens in chloroplasts
* Produces oxygen
1. Light reactions
2. Calvin cycle
For example, a leaf in sunlight makes glucose.
Plants such as ferns do it too.
"""


class TestHeuristic:
    def test_title_key_points_examples(self) -> None:
        card = heuristic_card_content(MESSAGE)
        assert card.title == "Photosynthesis is how plants make food from light."
        assert card.content.core_concept == card.title
        assert card.content.key_points == [
            "Happens in chloroplasts", "Produces oxygen", "Light reactions", "Calvin cycle",
        ]
        assert card.content.examples == [
            "For example, a leaf in sunlight makes glucose.",
            "Plants such as ferns do it too.",
        ]
        assert card.tags == ["learning", "knowledge"]

    def test_long_title_truncated(self) -> None:
        card = heuristic_card_content("x" * 80)
        assert card.title == "x" * 50 + "..."

    def test_defaults_when_nothing_found(self) -> None:
        card = heuristic_card_content("Short answer")
        assert card.content.key_points == ["Key point 1", "Key point 2"]
        assert card.content.examples == ["Example 1", "Example 2"]
        assert len(card.content.practice_questions) == 3

    def test_key_points_capped_at_five(self) -> None:
        text = "Title\n" + "\n".join(f"- point {i}" for i in range(8))
        assert len(heuristic_card_content(text).content.key_points) == 5

    def test_empty_text(self) -> None:
        card = heuristic_card_content("")
        assert card.title == "Knowledge Card"
        assert card.content.core_concept == "Core concept not identified"


class TestLearningContent:
    def test_keywords(self) -> None:
        assert is_learning_content("Let me explain the concept")
        assert not is_learning_content("Sounds good, see you tomorrow!")


class TestCardId:
    def test_format(self) -> None:
        assert re.fullmatch(r"card_\d+_[0-9a-z]{9}", new_card_id())


class TestCardRequest:
    def test_lists_template_sections(self) -> None:
        text = build_card_request("msg", "minimal", ["formulas"])
        assert "- core_concept:" in text
        assert "- key_points:" in text
        assert "- examples:" not in text
        assert "Also emphasise: formulas" in text
        assert text.endswith("Message:\nmsg")


class TestKnowledgeCardAgent:
    @pytest.mark.asyncio
    async def test_generate_from_model(self, mock_llm_client: LLMClient) -> None:
        payload = {
            "title": "A very long title that certainly goes past the fifty char limit",
            "content": {
                "core_concept": "Plants convert light.",
                "key_points": ["Chloroplasts"],
                "examples": ["Leaf"],
                "memory_tips": ["Photo = light"],
                "practice_questions": "What is it?",
            },
            "tags": ["biology"],
        }
        create = AsyncMock(return_value=mock_openai_response(json.dumps(payload)))
        mock_llm_client._client.chat.completions.create = create
        request = CardGenerationRequest(message_content=MESSAGE, message_id="m1", chat_id="c1")

        card = await KnowledgeCardAgent(mock_llm_client).generate(request, USER_ID)

        assert card.user_id == USER_ID
        assert card.title.endswith("...") and len(card.title) == 53
        assert card.content.key_points == ["Chloroplasts"]
        # basic template keeps only core_concept, key_points and examples
        assert card.content.memory_tips == []
        assert card.content.practice_questions == []
        assert card.source_message_id == "m1"
        assert card.source_chat_id == "c1"
        assert card.template == "basic"
        assert create.call_args.kwargs["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_falls_back_to_heuristic(self, mock_llm_client: LLMClient) -> None:
        create = AsyncMock(return_value=mock_openai_response("I cannot do JSON today."))
        mock_llm_client._client.chat.completions.create = create
        request = CardGenerationRequest(message_content=MESSAGE, template="detailed")

        card = await KnowledgeCardAgent(mock_llm_client).generate(request, USER_ID)

        assert create.call_count == 2
        assert card.title == "Photosynthesis is how plants make food from light."
        assert card.tags == ["learning", "knowledge"]
        assert card.template == "detailed"

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            await KnowledgeCardAgent(DryRunClient()).generate(
                CardGenerationRequest(message_content="  "), USER_ID,
            )

    @pytest.mark.asyncio
    async def test_detailed_template_keeps_all_sections(self) -> None:
        card = await KnowledgeCardAgent(DryRunClient()).generate(
            CardGenerationRequest(message_content=MESSAGE, template="detailed"), USER_ID,
        )
        assert card.title == "Photosynthesis"
        assert card.content.memory_tips
        assert card.content.practice_questions
