"""Filtering, sorting and summary statistics for knowledge topics."""

from __future__ import annotations

from typing import Literal

from lca.analytics.patterns import parse_timestamp, round_half_up
from lca.schemas.portrait import KnowledgeTopic, TopicStats

TopicFilter = Literal["all", "strength", "gap", "developing"]
TopicSort = Literal["confidence", "evidence", "recent"]


def filter_topics(topics: list[KnowledgeTopic], mastery: TopicFilter = "all") -> list[KnowledgeTopic]:
    if mastery == "all":
        return list(topics)
    return [t for t in topics if t.mastery_level == mastery]


def _mentioned_at(topic: KnowledgeTopic) -> float:
    if not topic.last_mentioned:
        return 0.0
    try:
        return parse_timestamp(topic.last_mentioned).timestamp()
    except ValueError:
        return 0.0


def sort_topics(topics: list[KnowledgeTopic], by: TopicSort = "confidence") -> list[KnowledgeTopic]:
    """Descending sort; stable, so equal keys keep their input order."""
    if by == "evidence":
        return sorted(topics, key=lambda t: t.evidence_count, reverse=True)
    if by == "recent":
        return sorted(topics, key=_mentioned_at, reverse=True)
    return sorted(topics, key=lambda t: t.confidence, reverse=True)


def group_topics(topics: list[KnowledgeTopic]) -> dict[str, list[KnowledgeTopic]]:
    groups: dict[str, list[KnowledgeTopic]] = {"strength": [], "gap": [], "developing": []}
    for t in topics:
        groups[t.mastery_level].append(t)
    return groups


def topic_stats(topics: list[KnowledgeTopic]) -> TopicStats:
    total = len(topics)
    groups = group_topics(topics)

    def pct(n: int) -> int:
        return int(round_half_up(n / total * 100)) if total else 0

    return TopicStats(
        total=total,
        strengths=len(groups["strength"]),
        gaps=len(groups["gap"]),
        developing=len(groups["developing"]),
        strength_percentage=pct(len(groups["strength"])),
        gap_percentage=pct(len(groups["gap"])),
        developing_percentage=pct(len(groups["developing"])),
    )
