"""Usage and question-pattern analysis over a user's recent chat history."""

from __future__ import annotations

import math
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable

from lca.schemas.learning import ChatMessage, LearningEvent, LearningPreferences
from lca.schemas.portrait import (
    LearningPatterns,
    PatternAnalysis,
    RecentActivity,
    UsageMetrics,
)

NO_DATA = "No data available"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp into UTC; naive values are taken as UTC."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _most_common_last_wins(counts: dict[str, int]) -> str:
    """Key with the highest count; on a tie the key seen later wins."""
    best: str | None = None
    for key, count in counts.items():
        if best is None or count >= counts[best]:
            best = key
    return best or NO_DATA


def time_slot(hour: int) -> str:
    if hour < 6:
        return "Night"
    if hour < 12:
        return "Morning"
    if hour < 18:
        return "Afternoon"
    return "Evening"


def most_active_day(messages: Iterable[ChatMessage]) -> str:
    counts: dict[str, int] = {}
    for msg in messages:
        day = parse_timestamp(msg.timestamp).strftime("%A")
        counts[day] = counts.get(day, 0) + 1
    return _most_common_last_wins(counts) if counts else NO_DATA


def preferred_time(messages: Iterable[ChatMessage]) -> str:
    counts: dict[str, int] = {}
    for msg in messages:
        slot = time_slot(parse_timestamp(msg.timestamp).hour)
        counts[slot] = counts.get(slot, 0) + 1
    return _most_common_last_wins(counts) if counts else NO_DATA


def count_learning_patterns(user_messages: Iterable[ChatMessage]) -> LearningPatterns:
    patterns = LearningPatterns()
    for msg in user_messages:
        text = msg.content.lower()
        if "?" in text:
            patterns.total_questions += 1
        if "example" in text or "show me" in text:
            patterns.example_requests += 1
        if "explain" in text or "how" in text:
            patterns.explanation_requests += 1
        if "code" in text or "function" in text:
            patterns.code_requests += 1
        if "difference" in text or "compare" in text:
            patterns.comparison_requests += 1
    return patterns


def analyze_user_patterns(
    messages: list[ChatMessage],
    events: list[LearningEvent],
    preferences: LearningPreferences | None = None,
    now: datetime | None = None,
) -> PatternAnalysis:
    """Summarise the last 30 days of chat and events.

    ``sessions_30d`` counts distinct calendar days with at least one
    message. ``last_7_days_messages`` is computed over every message
    passed in, not just the 30-day window.
    """
    now = now or datetime.now(timezone.utc)
    since_30d = now - timedelta(days=30)
    since_7d = now - timedelta(days=7)

    recent = [m for m in messages if parse_timestamp(m.timestamp) >= since_30d]
    recent_events = [e for e in events if parse_timestamp(e.timestamp) >= since_30d]

    user_messages = [m for m in recent if m.role == "user"]
    assistant_count = sum(1 for m in recent if m.role == "assistant")
    days = {parse_timestamp(m.timestamp).date() for m in recent}

    usage = UsageMetrics(
        total_messages_30d=len(recent),
        user_messages=len(user_messages),
        assistant_messages=assistant_count,
        sessions_30d=len(days),
        avg_messages_per_session=round_half_up(len(recent) / max(len(days), 1), 1),
    )

    return PatternAnalysis(
        user_preferences=preferences.model_dump(exclude_none=True) if preferences else None,
        usage_metrics=usage,
        learning_patterns=count_learning_patterns(user_messages),
        event_activity=dict(Counter(e.event_type for e in recent_events)),
        recent_activity=RecentActivity(
            last_7_days_messages=sum(1 for m in messages if parse_timestamp(m.timestamp) >= since_7d),
            most_active_day=most_active_day(recent),
            preferred_time=preferred_time(recent),
        ),
    )
