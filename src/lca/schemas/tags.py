"""Pydantic models for prompt tags, custom tags and their parameters."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, field_validator

TagCategory = Literal["identity", "style", "level", "values", "task", "custom"]
ParameterType = Literal["text", "select", "number", "boolean"]


class TagOption(BaseModel):
    value: str
    label: str


class TagParameter(BaseModel):
    """A typed value the user fills in when selecting a tag."""

    id: str | None = None
    tag_id: str | None = None
    name: str
    label: str = ""
    type: ParameterType = "text"
    required: bool = False
    default_value: str | None = None
    options: list[TagOption] | None = None
    placeholder: str | None = None
    order_index: int = 0

    @field_validator("required", mode="before")
    @classmethod
    def default_required(cls, v: object) -> object:
        return False if v is None else v

    @field_validator("order_index", mode="before")
    @classmethod
    def default_order(cls, v: object) -> object:
        return 0 if v is None else v


class CustomTag(BaseModel):
    id: str | None = None
    user_id: str = ""
    name: str
    description: str = ""
    prompt: str = ""
    category: str = "custom"
    color: str | None = None
    parameters: list[TagParameter] = []
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("parameters", mode="before")
    @classmethod
    def coerce_none_to_list(cls, v: object) -> object:
        return [] if v is None else v


class SelectedTag(BaseModel):
    """A tag chosen for the next message, with filled-in parameter values."""

    name: str
    parameters: dict[str, Any] = {}


class GeneratedTag(BaseModel):
    description: str
    prompt: str
