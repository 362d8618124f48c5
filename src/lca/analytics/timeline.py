"""Day-by-day learning activity over a 7, 30 or 90 day window."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from lca.analytics.patterns import parse_timestamp, round_half_up
from lca.schemas.learning import ChatMessage, ChatSession
from lca.schemas.timeline import DailyPatterns, PeakDay, Timeline, TimelineDay, TimelineSummary

logger = logging.getLogger(__name__)

RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_RANGE = "7d"


def range_bounds(range_key: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """``(start, end)`` for a range key; unknown keys fall back to 7 days."""
    end = now or datetime.now(timezone.utc)
    return end - timedelta(days=RANGE_DAYS.get(range_key, RANGE_DAYS[DEFAULT_RANGE])), end


def _daily_patterns(messages: list[ChatMessage]) -> DailyPatterns:
    patterns = DailyPatterns()
    for msg in messages:
        if msg.role != "user":
            continue
        text = msg.content.lower()
        if "example" in text or "show me" in text:
            patterns.example_requests += 1
        if "explain" in text or "why" in text or "how" in text:
            patterns.explanation_requests += 1
        if "code" in text or "function" in text or "implement" in text:
            patterns.code_requests += 1
        if "compare" in text or "difference" in text or "vs" in text:
            patterns.comparison_requests += 1
    return patterns


def build_timeline(
    sessions: list[ChatSession],
    messages: list[ChatMessage],
    range_key: str = DEFAULT_RANGE,
    now: datetime | None = None,
) -> Timeline:
    """Bucket sessions (by ``started_at``) and messages (by ``timestamp``) per UTC day.

    The window runs from ``now - N days`` to ``now`` inclusive, so a 7-day
    range has 8 entries. Sessions and messages outside it are ignored.
    """
    if range_key not in RANGE_DAYS:
        logger.warning("Unknown timeline range %r, using %s", range_key, DEFAULT_RANGE)
        range_key = DEFAULT_RANGE
    start, end = range_bounds(range_key, now)

    sessions_by_day: dict[str, int] = {}
    for s in sessions:
        if s.started_at:
            key = parse_timestamp(s.started_at).date().isoformat()
            sessions_by_day[key] = sessions_by_day.get(key, 0) + 1

    messages_by_day: dict[str, list[ChatMessage]] = {}
    for m in messages:
        if m.timestamp:
            key = parse_timestamp(m.timestamp).date().isoformat()
            messages_by_day.setdefault(key, []).append(m)

    days: list[TimelineDay] = []
    day = start.astimezone(timezone.utc).date()
    last = end.astimezone(timezone.utc).date()
    while day <= last:
        key = day.isoformat()
        day_messages = messages_by_day.get(key, [])
        day_sessions = sessions_by_day.get(key, 0)
        days.append(TimelineDay(
            date=key,
            day_name=day.strftime("%a"),
            messages=len(day_messages),
            sessions=day_sessions,
            avg_session_length=int(round_half_up(len(day_messages) / day_sessions)) if day_sessions else 0,
            is_weekend=day.weekday() >= 5,
            patterns=_daily_patterns(day_messages),
        ))
        day += timedelta(days=1)

    total_messages = sum(d.messages for d in days)
    total_sessions = sum(d.sessions for d in days)

    peak = PeakDay()
    for d in days:
        if d.messages > peak.messages:
            peak = PeakDay(date=d.date, day_name=d.day_name, messages=d.messages)

    return Timeline(
        range=range_key,
        timeline=days,
        summary=TimelineSummary(
            total_messages=total_messages,
            total_sessions=total_sessions,
            avg_daily_messages=int(round_half_up(total_messages / len(days))) if days else 0,
            peak_day=peak,
        ),
    )
