"""Pydantic models for the learning portrait and its analytics blocks."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from lca.schemas.learning import utc_now_iso

MasteryLevel = Literal["strength", "gap", "developing"]


class KnowledgeTopic(BaseModel):
    """A named concept with the learner's inferred mastery."""

    topic: str                   # e.g. "Light-dependent reactions"
    mastery_level: MasteryLevel = "developing"
    confidence: float = 0.5      # 0-1, confidence in the assessment
    evidence_count: int = 1      # messages mentioning the topic
    last_mentioned: str | None = None
    related_topics: list[str] = []


class UsageMetrics(BaseModel):
    total_messages_30d: int = 0
    user_messages: int = 0
    assistant_messages: int = 0
    sessions_30d: int = 0        # distinct calendar days with messages
    avg_messages_per_session: float = 0.0


class LearningPatterns(BaseModel):
    total_questions: int = 0
    example_requests: int = 0
    explanation_requests: int = 0
    code_requests: int = 0
    comparison_requests: int = 0


class RecentActivity(BaseModel):
    last_7_days_messages: int = 0
    most_active_day: str = "No data available"
    preferred_time: str = "No data available"


class PatternAnalysis(BaseModel):
    """Raw analytics fed to the portrait prompt and stored beside it."""

    user_preferences: dict[str, Any] | None = None
    usage_metrics: UsageMetrics = UsageMetrics()
    learning_patterns: LearningPatterns = LearningPatterns()
    event_activity: dict[str, int] = {}
    recent_activity: RecentActivity = RecentActivity()


class LearningPortrait(BaseModel):
    user_id: str = ""
    summary: str = ""
    preferred_style: str = ""
    strengths: str = ""
    challenges: str = ""
    pacing: str = ""
    recommendations: str = ""
    next_questions: list[str] = []
    last_updated: str = Field(default_factory=utc_now_iso)
    usage_metrics: UsageMetrics | None = None
    learning_patterns: LearningPatterns | None = None
    event_activity: dict[str, int] | None = None
    recent_activity: RecentActivity | None = None
    knowledge_topics: list[KnowledgeTopic] = []

    @field_validator(
        "summary", "preferred_style", "strengths", "challenges", "pacing", "recommendations",
        mode="before",
    )
    @classmethod
    def flatten_text(cls, v: object) -> object:
        # Models sometimes answer with a list or object where prose was asked for
        if v is None:
            return ""
        if isinstance(v, list):
            return "; ".join(str(item) for item in v)
        if isinstance(v, dict):
            return "; ".join(f"{k}: {val}" for k, val in v.items())
        return v

    @field_validator("next_questions", "knowledge_topics", mode="before")
    @classmethod
    def coerce_none_to_list(cls, v: object) -> object:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return v


class TopicStats(BaseModel):
    total: int = 0
    strengths: int = 0
    gaps: int = 0
    developing: int = 0
    strength_percentage: int = 0
    gap_percentage: int = 0
    developing_percentage: int = 0
