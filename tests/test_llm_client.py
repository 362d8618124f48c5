"""Tests for LLMClient and DryRunClient, with the OpenAI SDK mocked out."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from conftest import FakeStream, mock_openai_response
from lca.shared.llm_client import DryRunClient, LLMClient, _parse_retry_after


class TestSimpleCompletion:
    @pytest.mark.asyncio
    async def test_returns_text(self, mock_llm_client: LLMClient) -> None:
        mock_llm_client._client.chat.completions.create = AsyncMock(
            return_value=mock_openai_response("Hello!")
        )
        result = await mock_llm_client.simple_completion(system="sys", user_message="hi")
        assert result == "Hello!"

    @pytest.mark.asyncio
    async def test_json_mode_and_system_message(self, mock_llm_client: LLMClient) -> None:
        create = AsyncMock(return_value=mock_openai_response("{}"))
        mock_llm_client._client.chat.completions.create = create

        await mock_llm_client.simple_completion(
            system="be brief", user_message="hi", temperature=0.3, max_tokens=50,
        )

        kwargs = create.call_args.kwargs
        assert kwargs["messages"][0] == {"role": "system", "content": "be brief"}
        assert kwargs["messages"][1] == {"role": "user", "content": "hi"}
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 50
        assert kwargs["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_reports_token_usage(self, mock_llm_client: LLMClient) -> None:
        mock_llm_client._client.chat.completions.create = AsyncMock(
            return_value=mock_openai_response("ok")
        )
        seen: list[tuple[int, int]] = []
        await mock_llm_client.simple_completion(
            system="s", user_message="u", on_tokens=lambda i, o: seen.append((i, o)),
        )
        assert seen == [(10, 20)]

    @pytest.mark.asyncio
    async def test_none_content_becomes_empty_string(self, mock_llm_client: LLMClient) -> None:
        response = mock_openai_response("")
        response.choices[0].message.content = None
        mock_llm_client._client.chat.completions.create = AsyncMock(return_value=response)
        assert await mock_llm_client.simple_completion(system="s", user_message="u") == ""


class TestChatCompletion:
    @pytest.mark.asyncio
    async def test_history_without_system(self, mock_llm_client: LLMClient) -> None:
        create = AsyncMock(return_value=mock_openai_response("answer"))
        mock_llm_client._client.chat.completions.create = create

        history = [
            {"role": "user", "content": "q1"},
            {"role": "assistant", "content": "a1"},
            {"role": "user", "content": "q2"},
        ]
        result = await mock_llm_client.chat_completion(messages=history)

        assert result == "answer"
        assert create.call_args.kwargs["messages"] == history
        assert "response_format" not in create.call_args.kwargs


class TestStreamCompletion:
    @pytest.mark.asyncio
    async def test_yields_deltas(self, mock_llm_client: LLMClient) -> None:
        create = AsyncMock(return_value=FakeStream(["Hel", "lo", "", "!"]))
        mock_llm_client._client.chat.completions.create = create

        parts = [
            chunk async for chunk in mock_llm_client.stream_completion(
                messages=[{"role": "user", "content": "hi"}], system="sys",
            )
        ]

        assert parts == ["Hel", "lo", "!"]
        assert create.call_args.kwargs["stream"] is True


class TestParseRetryAfter:
    def test_header_wins(self) -> None:
        exc = SimpleNamespace(response=SimpleNamespace(headers={"retry-after": "7"}))
        assert _parse_retry_after(exc) == 7.0

    def test_message_seconds(self) -> None:
        exc = Exception("Rate limit reached. Please try again in 1.5s.")
        assert _parse_retry_after(exc) == 1.5

    def test_message_milliseconds(self) -> None:
        exc = Exception("Please try again in 250ms.")
        assert _parse_retry_after(exc) == 0.25

    def test_nothing_found(self) -> None:
        assert _parse_retry_after(Exception("nope")) is None


class TestDryRunClient:
    @pytest.mark.parametrize(
        ("system", "expected"),
        [
            ("You are a Learning Companion with a Learning Extension", "smart_qa"),
            ("You are a Learning Companion", "companion"),
            ("You turn messages into a Knowledge Card", "card"),
            ("You are an expert A/B testing analyst", "comparison"),
            ('Return JSON {"questions": []}', "deep_dive_questions"),
            ("Answer the user's question about their selected text.", "deep_dive_answer"),
            ("You are an expert educational analyst.", "topics"),
            ("You are a learning science advisor.", "portrait"),
            ("A prompt tag is a short instruction", "tag"),
            ("You are a helpful AI assistant.", "ab_response"),
        ],
    )
    def test_detect_agent(self, system: str, expected: str) -> None:
        assert DryRunClient._detect_agent(system) == expected

    @pytest.mark.asyncio
    async def test_stream_reassembles_text(self) -> None:
        client = DryRunClient()
        full = await client.chat_completion(messages=[], system="selected text")
        streamed = "".join([c async for c in client.stream_completion(messages=[], system="selected text")])
        assert streamed == full
