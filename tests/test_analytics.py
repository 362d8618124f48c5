"""Tests for usage patterns, the daily timeline and topic statistics."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from lca.analytics.patterns import (
    NO_DATA,
    analyze_user_patterns,
    most_active_day,
    parse_timestamp,
    preferred_time,
    round_half_up,
    time_slot,
)
from lca.analytics.timeline import build_timeline, range_bounds
from lca.analytics.topics import filter_topics, group_topics, sort_topics, topic_stats
from lca.schemas.learning import ChatMessage, ChatSession, LearningEvent, LearningPreferences
from lca.schemas.portrait import KnowledgeTopic

# A Tuesday
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _msg(content: str, ts: str, role: str = "user") -> ChatMessage:
    return ChatMessage(role=role, content=content, timestamp=ts)


class TestHelpers:
    def test_parse_timestamp(self) -> None:
        assert parse_timestamp("2026-03-10T12:00:00Z") == NOW
        assert parse_timestamp("2026-03-10T12:00:00") == NOW
        assert parse_timestamp("2026-03-10T07:00:00-05:00").tzinfo == timezone.utc

    def test_round_half_up(self) -> None:
        assert round_half_up(2.5) == 3.0
        assert round_half_up(0.25, 1) == 0.3
        assert round_half_up(7 / 3, 1) == 2.3

    @pytest.mark.parametrize(
        ("hour", "slot"), [(0, "Night"), (5, "Night"), (6, "Morning"), (12, "Afternoon"), (18, "Evening")],
    )
    def test_time_slot(self, hour: int, slot: str) -> None:
        assert time_slot(hour) == slot

    def test_ties_go_to_later_key(self) -> None:
        messages = [_msg("a", "2026-03-09T03:00:00+00:00"), _msg("b", "2026-03-08T20:00:00+00:00")]
        assert most_active_day(messages) == "Sunday"
        assert preferred_time(messages) == "Evening"

    def test_empty(self) -> None:
        assert most_active_day([]) == NO_DATA
        assert preferred_time([]) == NO_DATA


class TestAnalyzeUserPatterns:
    MESSAGES = [
        _msg("How does it work?", "2026-03-09T08:00:00+00:00"),
        _msg("Show me an example in code", "2026-03-09T14:00:00+00:00"),
        _msg("Here is how", "2026-03-09T14:01:00+00:00", "assistant"),
        _msg("What is the difference?", "2026-03-01T20:00:00+00:00"),
        _msg("Explain an old idea?", "2026-01-01T10:00:00+00:00"),
    ]

    def test_usage_metrics(self) -> None:
        usage = analyze_user_patterns(self.MESSAGES, [], now=NOW).usage_metrics
        assert usage.total_messages_30d == 4
        assert usage.user_messages == 3
        assert usage.assistant_messages == 1
        assert usage.sessions_30d == 2
        assert usage.avg_messages_per_session == 2.0

    def test_learning_patterns_count_user_messages_only(self) -> None:
        patterns = analyze_user_patterns(self.MESSAGES, [], now=NOW).learning_patterns
        assert patterns.total_questions == 2
        assert patterns.example_requests == 1
        assert patterns.explanation_requests == 2  # "show" contains "how"
        assert patterns.code_requests == 1
        assert patterns.comparison_requests == 1

    def test_recent_activity(self) -> None:
        recent = analyze_user_patterns(self.MESSAGES, [], now=NOW).recent_activity
        assert recent.last_7_days_messages == 3
        assert recent.most_active_day == "Monday"
        assert recent.preferred_time == "Afternoon"

    def test_offset_timestamps_bucket_in_utc(self) -> None:
        messages = [_msg("Late question?", "2026-03-09T23:30:00-05:00")]
        analysis = analyze_user_patterns(messages, [], now=NOW)
        assert analysis.recent_activity.most_active_day == "Tuesday"
        assert analysis.recent_activity.preferred_time == "Night"
        assert analysis.usage_metrics.sessions_30d == 1

    def test_events_and_preferences(self) -> None:
        events = [
            LearningEvent(event_type="suggestion_clicked", timestamp="2026-03-05T10:00:00+00:00"),
            LearningEvent(event_type="suggestion_clicked", timestamp="2026-03-06T10:00:00+00:00"),
            LearningEvent(event_type="chat_ended", timestamp="2025-12-01T10:00:00+00:00"),
        ]
        analysis = analyze_user_patterns([], events, LearningPreferences(user_id="u"), now=NOW)
        assert analysis.event_activity == {"suggestion_clicked": 2}
        assert analysis.user_preferences["educational_level"] == "high-school"
        assert "created_at" not in analysis.user_preferences

    def test_no_data(self) -> None:
        analysis = analyze_user_patterns([], [], now=NOW)
        assert analysis.usage_metrics.avg_messages_per_session == 0.0
        assert analysis.user_preferences is None
        assert analysis.recent_activity.most_active_day == NO_DATA


class TestTimeline:
    SESSIONS = [
        ChatSession(id="s1", started_at="2026-03-09T10:00:00+00:00"),
        ChatSession(id="s2", started_at="2026-03-09T18:00:00+00:00"),
        ChatSession(id="s3", started_at="2026-01-01T10:00:00+00:00"),
    ]
    MESSAGES = [
        _msg("Why is the sky blue?", "2026-03-09T10:01:00+00:00"),
        _msg("Python vs Go", "2026-03-09T10:02:00+00:00"),
        _msg("Implement a function", "2026-03-09T10:03:00+00:00"),
        _msg("Show me", "2026-03-09T18:01:00+00:00"),
        _msg("Because of scattering; here is how it works", "2026-03-09T18:02:00+00:00", "assistant"),
        _msg("ignored", "2026-02-01T10:00:00+00:00"),
    ]

    def test_days_are_inclusive(self) -> None:
        timeline = build_timeline(self.SESSIONS, self.MESSAGES, "7d", now=NOW)
        assert len(timeline.timeline) == 8
        assert timeline.timeline[0].date == "2026-03-03"
        assert timeline.timeline[-1].date == "2026-03-10"
        assert len(build_timeline([], [], "30d", now=NOW).timeline) == 31

    def test_daily_bucket(self) -> None:
        timeline = build_timeline(self.SESSIONS, self.MESSAGES, "7d", now=NOW)
        day = next(d for d in timeline.timeline if d.date == "2026-03-09")
        assert day.day_name == "Mon"
        assert day.messages == 5
        assert day.sessions == 2
        assert day.avg_session_length == 3
        assert not day.is_weekend
        assert day.patterns.explanation_requests == 2
        assert day.patterns.comparison_requests == 1
        assert day.patterns.code_requests == 1
        assert day.patterns.example_requests == 1

    def test_weekend_flag(self) -> None:
        timeline = build_timeline([], [], "7d", now=NOW)
        weekend = [d.date for d in timeline.timeline if d.is_weekend]
        assert weekend == ["2026-03-07", "2026-03-08"]

    def test_summary(self) -> None:
        summary = build_timeline(self.SESSIONS, self.MESSAGES, "7d", now=NOW).summary
        assert summary.total_messages == 5
        assert summary.total_sessions == 2
        assert summary.avg_daily_messages == 1
        assert summary.peak_day.date == "2026-03-09"
        assert summary.peak_day.messages == 5

    def test_empty_has_no_peak(self) -> None:
        summary = build_timeline([], [], "7d", now=NOW).summary
        assert summary.peak_day.date == ""
        assert summary.avg_daily_messages == 0

    def test_unknown_range_falls_back(self) -> None:
        timeline = build_timeline([], [], "1y", now=NOW)
        assert timeline.range == "7d"
        assert len(timeline.timeline) == 8

    def test_range_bounds(self) -> None:
        start, end = range_bounds("90d", now=NOW)
        assert end == NOW
        assert (end - start).days == 90


class TestTopics:
    TOPICS = [
        KnowledgeTopic(topic="A", mastery_level="strength", confidence=0.4, evidence_count=5,
                       last_mentioned="2026-03-01T00:00:00+00:00"),
        KnowledgeTopic(topic="B", mastery_level="gap", confidence=0.9, evidence_count=1,
                       last_mentioned="not a date"),
        KnowledgeTopic(topic="C", mastery_level="developing", confidence=0.4, evidence_count=3,
                       last_mentioned="2026-03-09T00:00:00+00:00"),
    ]

    def test_filter(self) -> None:
        assert [t.topic for t in filter_topics(self.TOPICS, "gap")] == ["B"]
        assert len(filter_topics(self.TOPICS)) == 3

    def test_sort(self) -> None:
        assert [t.topic for t in sort_topics(self.TOPICS)] == ["B", "A", "C"]
        assert [t.topic for t in sort_topics(self.TOPICS, "evidence")] == ["A", "C", "B"]
        assert [t.topic for t in sort_topics(self.TOPICS, "recent")] == ["C", "A", "B"]

    def test_group(self) -> None:
        groups = group_topics(self.TOPICS)
        assert list(groups) == ["strength", "gap", "developing"]
        assert [t.topic for t in groups["developing"]] == ["C"]

    def test_stats(self) -> None:
        stats = topic_stats(self.TOPICS)
        assert (stats.total, stats.strengths, stats.gaps, stats.developing) == (3, 1, 1, 1)
        assert stats.strength_percentage == 33
        assert topic_stats([]).gap_percentage == 0
