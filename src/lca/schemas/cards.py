"""Pydantic models for knowledge cards."""

from __future__ import annotations

import random
import string
import time
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from lca.schemas.learning import utc_now_iso

CardTemplate = Literal["basic", "detailed", "visual", "minimal"]

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_card_id() -> str:
    """``card_<epoch ms>_<9 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"card_{int(time.time() * 1000)}_{suffix}"


class CardContent(BaseModel):
    core_concept: str = ""
    key_points: list[str] = []
    examples: list[str] = []
    related_concepts: list[str] = []
    memory_tips: list[str] = []
    practice_questions: list[str] = []

    @field_validator(
        "key_points", "examples", "related_concepts", "memory_tips", "practice_questions",
        mode="before",
    )
    @classmethod
    def coerce_to_list(cls, v: object) -> object:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return v


class GeneratedCard(BaseModel):
    """What the model (or the heuristic fallback) produces for a card."""

    title: str
    content: CardContent
    tags: list[str] = []


class CardGenerationRequest(BaseModel):
    message_content: str
    message_id: str = ""
    chat_id: str = ""
    template: CardTemplate = "basic"
    custom_sections: list[str] = []


class KnowledgeCard(BaseModel):
    id: str = Field(default_factory=new_card_id)
    user_id: str
    title: str
    content: CardContent
    source_message_id: str = ""
    source_chat_id: str = ""
    tags: list[str] = []
    template: CardTemplate = "basic"
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)
