"""Tests for the Learning Companion agent, chat session and adaptive style."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from conftest import USER_ID, FakeStream, FakeSupabase, api_error, mock_openai_response
from lca.agents.companion.agent import CompanionAgent, split_suggested_questions
from lca.agents.companion.prompts import LEVEL_PROFILES, build_companion_prompt, build_smart_qa_prompt
from lca.agents.companion.session import CompanionChat
from lca.agents.companion.style import extract_topics, generate_style_prompt
from lca.schemas.learning import HistoryEntry, LearningPreferences
from lca.shared.llm_client import DryRunClient, LLMClient
from lca.store.learning import LearningStore

REPLY = (
    "Photosynthesis turns light into sugar.\n\n"
    "```json\n"
    + json.dumps({"suggested_questions": ["What is chlorophyll?", "Where does it happen?", 42]})
    + "\n```"
)


class TestSplitSuggestedQuestions:
    def test_extracts_questions_and_strips_block(self) -> None:
        content, questions = split_suggested_questions(REPLY)
        assert content == "Photosynthesis turns light into sugar."
        assert questions == ["What is chlorophyll?", "Where does it happen?"]

    def test_no_block(self) -> None:
        assert split_suggested_questions("Just an answer.") == ("Just an answer.", [])

    def test_unparsable_block_leaves_text(self) -> None:
        text = "Answer\n```json\n{not json}\n```"
        assert split_suggested_questions(text) == (text, [])

    def test_block_without_key(self) -> None:
        content, questions = split_suggested_questions('Answer\n```json\n{"other": 1}\n```')
        assert content == "Answer"
        assert questions == []

    def test_only_first_block_is_used(self) -> None:
        text = (
            'A\n```json\n{"suggested_questions": ["one"]}\n```\n'
            'B\n```json\n{"suggested_questions": ["two"]}\n```'
        )
        content, questions = split_suggested_questions(text)
        assert questions == ["one"]
        assert "two" in content


class TestPrompts:
    def test_all_six_levels(self) -> None:
        assert set(LEVEL_PROFILES) == {
            "elementary", "middle-school", "high-school", "undergraduate", "graduate", "expert",
        }

    def test_companion_prompt_mentions_level_and_style(self) -> None:
        prompt = build_companion_prompt("graduate", "concise")
        assert "User Educational Level: graduate" in prompt
        assert "Response Style Preference: concise" in prompt
        assert LEVEL_PROFILES["graduate"].knowledge_scope in prompt
        assert '"suggested_questions"' in prompt

    def test_unknown_level_falls_back_to_high_school(self) -> None:
        prompt = build_companion_prompt("toddler", "detailed")
        assert LEVEL_PROFILES["high-school"].prompt in prompt

    def test_smart_qa_prompt_asks_for_extension(self) -> None:
        assert "Learning Extension" in build_smart_qa_prompt("expert")


class TestCompanionAgent:
    @pytest.mark.asyncio
    async def test_reply_streams_and_splits(self, mock_llm_client: LLMClient) -> None:
        create = AsyncMock(return_value=FakeStream([REPLY[:20], REPLY[20:]]))
        mock_llm_client._client.chat.completions.create = create
        agent = CompanionAgent(mock_llm_client)
        chunks: list[str] = []

        reply = await agent.reply(
            "What is photosynthesis?",
            level="middle-school",
            preferences=LearningPreferences(preferred_style="concise"),
            history=[HistoryEntry(role="user", content="hi"), HistoryEntry(role="assistant", content="hello")],
            on_chunk=chunks.append,
        )

        assert "".join(chunks) == REPLY
        assert reply.content == "Photosynthesis turns light into sugar."
        assert reply.suggested_questions == ["What is chlorophyll?", "Where does it happen?"]
        kwargs = create.call_args.kwargs
        assert kwargs["temperature"] == 0.7
        assert kwargs["stream"] is True
        assert [m["role"] for m in kwargs["messages"]] == ["system", "user", "assistant", "user"]
        assert "Response Style Preference: concise" in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_smart_answer(self, mock_llm_client: LLMClient) -> None:
        create = AsyncMock(return_value=mock_openai_response("Answer\n**Learning Extension:** more"))
        mock_llm_client._client.chat.completions.create = create

        answer = await CompanionAgent(mock_llm_client).smart_answer("Why?", "elementary")

        assert "Learning Extension" in answer
        assert "Learning Extension" in create.call_args.kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_dry_run_reply(self) -> None:
        reply = await CompanionAgent(DryRunClient()).reply("What is photosynthesis?")
        assert reply.content.startswith("Photosynthesis")
        assert len(reply.suggested_questions) == 3


class TestCompanionChat:
    @pytest.mark.asyncio
    async def test_persists_session_and_messages(self, learning_store: LearningStore, fake_db: FakeSupabase) -> None:
        prefs = LearningPreferences(user_id=USER_ID, educational_level="graduate", preferred_style="concise")
        chat = CompanionChat(CompanionAgent(DryRunClient()), prefs, store=learning_store)

        reply = await chat.ask("What is photosynthesis?")

        sessions = fake_db.tables["chat_sessions"]
        assert len(sessions) == 1
        assert sessions[0]["educational_level"] == "graduate"
        assert sessions[0]["message_count"] == 2
        messages = fake_db.tables["chat_messages"]
        assert [m["role"] for m in messages] == ["user", "assistant"]
        assert messages[1]["suggested_questions"] == reply.suggested_questions
        assert reply.session_id == sessions[0]["id"]
        assert chat.last_message_id == messages[1]["id"]
        assert [h.role for h in chat.history] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_history_is_sent_on_next_turn(self) -> None:
        client = DryRunClient()
        client.stream_completion = _recording_stream(client)
        chat = CompanionChat(CompanionAgent(client), LearningPreferences())

        await chat.ask("first")
        await chat.ask("second")

        sent = client.sent[-1]
        assert [m["content"] for m in sent if m["role"] == "user"] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_store_failure_does_not_stop_chat(self, learning_store: LearningStore, fake_db: FakeSupabase) -> None:
        fake_db.errors["chat_sessions"] = api_error("database down")
        chat = CompanionChat(CompanionAgent(DryRunClient()), LearningPreferences(), store=learning_store)

        reply = await chat.ask("Still works?")

        assert reply.content
        assert reply.session_id is None
        assert fake_db.tables.get("chat_messages", []) == []

    @pytest.mark.asyncio
    async def test_empty_question_rejected(self) -> None:
        chat = CompanionChat(CompanionAgent(DryRunClient()), LearningPreferences())
        with pytest.raises(ValueError, match="empty"):
            await chat.ask("   ")

    @pytest.mark.asyncio
    async def test_suggestion_click_and_end(self, learning_store: LearningStore, fake_db: FakeSupabase) -> None:
        chat = CompanionChat(CompanionAgent(DryRunClient()), LearningPreferences(), store=learning_store)
        reply = await chat.ask("What is photosynthesis?")

        chat.record_suggestion_click(reply.suggested_questions[0])
        chat.end()

        event = fake_db.tables["learning_events"][0]
        assert event["event_type"] == "suggestion_clicked"
        assert event["payload"]["question_text"] == reply.suggested_questions[0]
        assert event["payload"]["assistant_message_id"] == chat.last_message_id
        assert fake_db.tables["chat_sessions"][0]["ended_at"]


def _recording_stream(client: DryRunClient):
    original = client.stream_completion
    client.sent = []

    def stream(**kwargs):
        client.sent.append(kwargs["messages"])
        return original(**kwargs)

    return stream


class TestAdaptiveStyle:
    def test_no_preferences_gives_generic_prompt(self) -> None:
        result = generate_style_prompt(None, "hi")
        assert result.style_prompt == "Provide a helpful and informative response."
        assert result.applied_style == "detailed"

    def test_composes_guidance(self) -> None:
        prefs = LearningPreferences(
            preferred_style="concise",
            complexity_level="beginner",
            preferred_examples="technical",
            learning_goals=["pass the exam", "learn SQL"],
        )
        result = generate_style_prompt(prefs, "hi")
        assert result.style_prompt.startswith("Keep your response brief")
        assert "Use simple language" in result.style_prompt
        assert "pass the exam, learn SQL" in result.style_prompt
        assert result.applied_style == "concise"
        assert result.complexity_level == "beginner"

    def test_recent_topics_from_last_three_user_entries(self) -> None:
        history = [
            HistoryEntry(role="user", content="Tell me about cooking"),
            HistoryEntry(role="user", content="Explain machine learning"),
            HistoryEntry(role="assistant", content="programming is fun"),
            HistoryEntry(role="user", content="What about a database?"),
        ]
        result = generate_style_prompt(LearningPreferences(), "", history)
        assert "Build upon these recent topics: machine learning, database." in result.style_prompt

    def test_extract_topics_caps_at_three(self) -> None:
        history = [HistoryEntry(
            role="user",
            content="programming, database, algorithm and machine learning",
        )]
        assert len(extract_topics(history)) == 3
