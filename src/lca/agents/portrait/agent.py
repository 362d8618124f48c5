"""Learning Portrait agent: knowledge topics plus an AI-written learner profile."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any, Callable

from openai import OpenAIError

from lca.agents.base import BaseAgent, extract_json
from lca.agents.portrait.prompts import (
    PORTRAIT_SYSTEM_PROMPT,
    build_portrait_request,
    build_topics_prompt,
    build_topics_request,
)
from lca.analytics.patterns import analyze_user_patterns, parse_timestamp
from lca.schemas.learning import ChatMessage, LearningEvent, LearningPreferences, utc_now_iso
from lca.schemas.portrait import KnowledgeTopic, LearningPortrait
from lca.shared.llm_client import LLMClient
from lca.store.learning import LearningStore

logger = logging.getLogger(__name__)

TOPIC_TEMPERATURE = 0.3
TOPIC_MAX_TOKENS = 2_000
TOPIC_MESSAGE_WINDOW = 30
MAX_TOPICS = 20
PORTRAIT_TEMPERATURE = 0.5
PORTRAIT_MAX_TOKENS = 800

MASTERY_LEVELS = ("strength", "gap", "developing")


def parse_topic_entries(content: str) -> list[dict[str, Any]]:
    """Pull the raw topic list out of whatever shape the model returned."""
    try:
        parsed: Any = json.loads(content)
    except json.JSONDecodeError:
        array_match = re.search(r"\[[\s\S]*\]", content)
        if array_match:
            parsed = json.loads(array_match.group(0))
        else:
            obj_match = re.search(r"\{[\s\S]*\}", content)
            if not obj_match:
                return []
            obj = json.loads(obj_match.group(0))
            parsed = obj.get("topics") or obj.get("knowledge_topics") or obj.get("data") or []

    if isinstance(parsed, list):
        return [t for t in parsed if isinstance(t, dict)]
    if isinstance(parsed, dict):
        for key in ("topics", "knowledge_topics"):
            if isinstance(parsed.get(key), list):
                return [t for t in parsed[key] if isinstance(t, dict)]
    return []


def enrich_topics(entries: list[dict[str, Any]], messages: list[ChatMessage]) -> list[KnowledgeTopic]:
    """Validate model topics and ground their evidence in the actual messages."""
    topics: list[KnowledgeTopic] = []
    for entry in entries:
        name = str(entry.get("topic") or "").strip()
        if not name or not entry.get("mastery_level"):
            continue

        needle = name.lower()
        mentions = [m for m in messages if needle in m.content.lower()]
        last_mentioned = (
            max(mentions, key=lambda m: parse_timestamp(m.timestamp)).timestamp
            if mentions else entry.get("last_mentioned")
        )

        confidence = entry.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            confidence = 0.5
        mastery = entry.get("mastery_level")
        related = entry.get("related_topics")
        evidence = entry.get("evidence_count")

        topics.append(KnowledgeTopic(
            topic=name,
            mastery_level=mastery if mastery in MASTERY_LEVELS else "developing",
            confidence=max(0.0, min(1.0, float(confidence))),
            evidence_count=len(mentions) or (evidence if isinstance(evidence, int) and evidence > 0 else 1),
            last_mentioned=str(last_mentioned) if last_mentioned else None,
            related_topics=[str(r) for r in related] if isinstance(related, list) else [],
        ))
    return topics[:MAX_TOPICS]


class PortraitAgent(BaseAgent):
    """Builds a learning portrait from recent messages, events and preferences."""

    def __init__(self, client: LLMClient, *, model: str | None = None) -> None:
        super().__init__(client)
        self.model = model

    @property
    def name(self) -> str:
        return "Learning Portrait"

    def get_system_prompt(self) -> str:
        return PORTRAIT_SYSTEM_PROMPT

    def parse_output(self, raw_text: str) -> LearningPortrait:
        """Portrait fields from JSON; unparsable text becomes the summary."""
        try:
            data = extract_json(raw_text)
        except (ValueError, json.JSONDecodeError):
            logger.warning("Portrait response was not JSON; storing it as the summary")
            return LearningPortrait(summary=raw_text)
        allowed = set(LearningPortrait.model_fields) - {"user_id", "last_updated", "knowledge_topics"}
        return LearningPortrait(**{k: v for k, v in data.items() if k in allowed})

    async def extract_topics(self, messages: list[ChatMessage], educational_level: str) -> list[KnowledgeTopic]:
        """Knowledge topics with mastery levels; any failure yields an empty list.

        ``messages`` are newest first; only the first 30 are sent to the model
        but evidence is counted across all of them.
        """
        if not messages:
            return []

        conversation = "\n\n".join(
            f"{'User' if m.role == 'user' else 'Assistant'}: {m.content}"
            for m in messages[:TOPIC_MESSAGE_WINDOW]
        )
        try:
            content = await self.client.simple_completion(
                system=build_topics_prompt(educational_level),
                user_message=build_topics_request(conversation),
                model=self.model,
                temperature=TOPIC_TEMPERATURE,
                max_tokens=TOPIC_MAX_TOKENS,
            )
            if not content:
                return []
            return enrich_topics(parse_topic_entries(content), messages)
        except (ValueError, KeyError, TypeError, OpenAIError) as exc:
            logger.error("Error extracting knowledge topics: %s", exc)
            return []

    async def generate(
        self,
        messages: list[ChatMessage],
        events: list[LearningEvent],
        preferences: LearningPreferences | None,
        *,
        now: datetime | None = None,
        on_progress: Callable[[str], None] | None = None,
    ) -> LearningPortrait:
        if on_progress:
            on_progress("analyzing usage patterns")
        analysis = analyze_user_patterns(messages, events, preferences, now=now)

        if on_progress:
            on_progress("extracting knowledge topics")
        level = preferences.educational_level if preferences else "high-school"
        topics = await self.extract_topics(messages, level)

        if on_progress:
            on_progress("writing portrait")
        raw = await self.client.simple_completion(
            system=self.get_system_prompt(),
            user_message=build_portrait_request(
                analysis.model_dump(mode="json"),
                [{"topic": t.topic, "mastery": t.mastery_level} for t in topics],
            ),
            model=self.model,
            temperature=PORTRAIT_TEMPERATURE,
            max_tokens=PORTRAIT_MAX_TOKENS,
        )
        portrait = self.parse_output(raw or "{}")

        portrait.usage_metrics = analysis.usage_metrics
        portrait.learning_patterns = analysis.learning_patterns
        portrait.event_activity = analysis.event_activity
        portrait.recent_activity = analysis.recent_activity
        portrait.knowledge_topics = topics
        portrait.last_updated = utc_now_iso()
        return portrait


class PortraitService:
    """Generates, persists and retrieves the current user's portrait."""

    MESSAGE_LIMIT = 50
    EVENT_LIMIT = 30

    def __init__(self, agent: PortraitAgent, store: LearningStore) -> None:
        self.agent = agent
        self.store = store

    async def generate(
        self,
        *,
        now: datetime | None = None,
        on_progress: Callable[[str], None] | None = None,
    ) -> LearningPortrait:
        if on_progress:
            on_progress("loading learning history")
        messages = self.store.recent_messages(limit=self.MESSAGE_LIMIT)
        events = self.store.recent_events(limit=self.EVENT_LIMIT)
        preferences = self.store.get_preferences()
        logger.info(
            "Generating portrait from %d messages and %d events", len(messages), len(events),
        )

        portrait = await self.agent.generate(
            messages, events, preferences, now=now, on_progress=on_progress,
        )
        portrait.user_id = self.store.user_id
        return self.store.save_portrait(portrait)

    def get(self) -> LearningPortrait | None:
        return self.store.get_portrait()

    def delete(self) -> None:
        self.store.delete_portrait()
