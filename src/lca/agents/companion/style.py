"""Adaptive style guidance built from stored preferences and recent chat topics."""

from __future__ import annotations

from lca.agents.companion.prompts import (
    COMPLEXITY_PROMPTS,
    EXAMPLE_PROMPTS,
    GENERIC_STYLE_PROMPT,
    STYLE_PROMPTS,
    TOPIC_KEYWORDS,
)
from lca.schemas.learning import AdaptiveStyle, HistoryEntry, LearningPreferences

MAX_RECENT_TOPICS = 3


def extract_topics(history: list[HistoryEntry]) -> list[str]:
    """Known topic keywords found in user turns, first-seen order, at most three."""
    topics: list[str] = []
    for entry in history:
        if entry.role != "user":
            continue
        text = entry.content.lower()
        for keyword in TOPIC_KEYWORDS:
            if keyword in text and keyword not in topics:
                topics.append(keyword)
    return topics[:MAX_RECENT_TOPICS]


def generate_style_prompt(
    preferences: LearningPreferences | None,
    message: str = "",
    history: list[HistoryEntry] | None = None,
) -> AdaptiveStyle:
    """Compose style, complexity and example guidance for the next reply.

    Only the last three history entries are scanned for topics.
    """
    if preferences is None:
        return AdaptiveStyle(style_prompt=GENERIC_STYLE_PROMPT)

    prompt = " ".join([
        STYLE_PROMPTS.get(preferences.preferred_style, STYLE_PROMPTS["detailed"]),
        COMPLEXITY_PROMPTS.get(preferences.complexity_level, COMPLEXITY_PROMPTS["intermediate"]),
        EXAMPLE_PROMPTS.get(preferences.preferred_examples, EXAMPLE_PROMPTS["mixed"]),
    ])

    if preferences.learning_goals:
        prompt += f" Keep in mind the user's learning goals: {', '.join(preferences.learning_goals)}."

    if history:
        recent = extract_topics(history[-3:])
        if recent:
            prompt += f" Build upon these recent topics: {', '.join(recent)}."

    return AdaptiveStyle(
        style_prompt=prompt,
        applied_style=preferences.preferred_style,
        complexity_level=preferences.complexity_level,
    )
