"""Pydantic models for preferences, chat sessions, messages and learning events."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationInfo, field_validator

EducationalLevel = Literal[
    "elementary", "middle-school", "high-school", "undergraduate", "graduate", "expert",
]
PreferredStyle = Literal["concise", "detailed", "example-driven", "step-by-step", "visual"]
ComplexityLevel = Literal["beginner", "intermediate", "advanced"]
PreferredExamples = Literal["real-world", "academic", "technical", "mixed"]

EDUCATIONAL_LEVELS: tuple[str, ...] = EducationalLevel.__args__  # type: ignore[attr-defined]
PREFERRED_STYLES: tuple[str, ...] = PreferredStyle.__args__  # type: ignore[attr-defined]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class LearningPreferences(BaseModel):
    """A user's learning preferences.

    ``educational_level`` and ``preferred_style`` are what the companion chat
    persists. The remaining fields feed the adaptive style prompt and are
    optional in stored rows.
    """

    user_id: str = ""
    educational_level: EducationalLevel = "high-school"
    preferred_style: PreferredStyle = "detailed"
    complexity_level: ComplexityLevel = "intermediate"
    preferred_examples: PreferredExamples = "mixed"
    learning_goals: list[str] = []
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("learning_goals", mode="before")
    @classmethod
    def coerce_none_to_list(cls, v: object) -> object:
        return [] if v is None else v

    @field_validator(
        "educational_level", "preferred_style", "complexity_level", "preferred_examples", mode="before",
    )
    @classmethod
    def coerce_none_to_default(cls, v: object, info: ValidationInfo) -> object:
        if v is None:
            return cls.model_fields[info.field_name].default
        return v


class ChatSession(BaseModel):
    id: str = ""
    user_id: str = ""
    educational_level: str = "high-school"
    preferred_style: str = "detailed"
    started_at: str = Field(default_factory=utc_now_iso)
    ended_at: str | None = None
    message_count: int = 0


class ChatMessage(BaseModel):
    id: str = ""
    session_id: str = ""
    user_id: str = ""
    role: Literal["user", "assistant"]
    content: str
    suggested_questions: list[str] | None = None
    timestamp: str = Field(default_factory=utc_now_iso)


class LearningEvent(BaseModel):
    id: str = ""
    user_id: str = ""
    event_type: str              # e.g. "suggestion_clicked"
    payload: dict[str, Any] | None = None
    session_id: str | None = None
    timestamp: str = Field(default_factory=utc_now_iso)


class HistoryEntry(BaseModel):
    """One prior turn passed to the companion as conversation context."""

    role: Literal["user", "assistant"]
    content: str


class CompanionReply(BaseModel):
    """Assistant reply with the suggested follow-up questions split out."""

    content: str
    suggested_questions: list[str] = []
    session_id: str | None = None


class AdaptiveStyle(BaseModel):
    style_prompt: str
    applied_style: str = "detailed"
    complexity_level: str = "intermediate"


class Profile(BaseModel):
    id: str | None = None
    user_id: str
    username: str = ""
    display_name: str = ""
    bio: str = ""
    image_url: str = ""
    profile_context: str = ""
    created_at: str | None = None
    updated_at: str | None = None
