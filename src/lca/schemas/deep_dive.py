"""Pydantic models for Deep Dive follow-up questions."""

from typing import Literal

from pydantic import BaseModel, field_validator

ContextType = Literal["code", "data", "concept", "general"]


class DeepDiveQuestion(BaseModel):
    id: str = ""
    question: str
    category: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        return "" if v is None else str(v)


class DeepDiveSuggestions(BaseModel):
    context_type: ContextType = "general"
    questions: list[DeepDiveQuestion] = []
