"""Tests for Deep Dive context detection, suggestions and answers."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from conftest import FakeStream, mock_openai_response
from lca.agents.deep_dive.agent import DeepDiveAgent, detect_context_type
from lca.agents.deep_dive.prompts import build_answer_request, build_suggestion_request
from lca.shared.llm_client import DryRunClient, LLMClient


class TestDetectContextType:
    @pytest.mark.parametrize(
        ("selected", "expected"),
        [
            ("use `map()` here", "code"),
            ("```\nprint(1)\n```", "code"),
            ("grew by 15%", "data"),
            ("costs $30", "data"),
            ("pi is 3.14", "data"),
            ("Quantum Entanglement", "concept"),
            ("  Photosynthesis  ", "concept"),
            ("the plants grow fast", "general"),
            ("DNA replication", "general"),
        ],
    )
    def test_detect(self, selected: str, expected: str) -> None:
        assert detect_context_type(selected) == expected


class TestPrompts:
    def test_suggestion_request_truncates_context(self) -> None:
        text = build_suggestion_request("word", "c" * 900, "What is it?")
        assert f"From context: {'c' * 500}..." in text
        assert "c" * 501 not in text
        assert "Original question: What is it?" in text

    def test_answer_request_truncates_context(self) -> None:
        text = build_answer_request("word", "c" * 900, "Why?")
        assert "c" * 600 in text and "c" * 601 not in text
        assert "Question: Why?" in text


class TestDeepDiveAgent:
    @pytest.mark.asyncio
    async def test_suggest(self, mock_llm_client: LLMClient) -> None:
        payload = {"questions": [
            {"id": 1, "question": "What does it return?", "category": "Explanation"},
            {"id": "2", "question": "  ", "category": "Debugging"},
        ]}
        create = AsyncMock(return_value=mock_openai_response(json.dumps(payload)))
        mock_llm_client._client.chat.completions.create = create

        result = await DeepDiveAgent(mock_llm_client).suggest("`sorted(xs)`", "Use `sorted(xs)` to sort.")

        assert result.context_type == "code"
        assert [q.question for q in result.questions] == ["What does it return?"]
        assert result.questions[0].id == "1"
        kwargs = create.call_args.kwargs
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 300
        assert kwargs["response_format"] == {"type": "json_object"}
        assert "selected code" in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_explicit_context_type(self) -> None:
        result = await DeepDiveAgent(DryRunClient()).suggest("plain words", "ctx", context_type="data")
        assert result.context_type == "data"
        assert len(result.questions) == 3

    @pytest.mark.asyncio
    async def test_missing_questions_raises(self, mock_llm_client: LLMClient) -> None:
        mock_llm_client._client.chat.completions.create = AsyncMock(
            return_value=mock_openai_response('{"items": []}')
        )
        with pytest.raises(ValueError, match="questions"):
            await DeepDiveAgent(mock_llm_client).suggest("x", "y")

    @pytest.mark.asyncio
    async def test_empty_selection(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            await DeepDiveAgent(DryRunClient()).suggest("  ", "ctx")

    @pytest.mark.asyncio
    async def test_answer_streams(self, mock_llm_client: LLMClient) -> None:
        create = AsyncMock(return_value=FakeStream(["It ", "sorts."]))
        mock_llm_client._client.chat.completions.create = create
        chunks: list[str] = []

        answer = await DeepDiveAgent(mock_llm_client).answer(
            "sorted", "Use sorted.", "What does it do?", on_chunk=chunks.append,
        )

        assert answer == "It sorts."
        assert chunks == ["It ", "sorts."]
        assert create.call_args.kwargs["max_tokens"] == 500
