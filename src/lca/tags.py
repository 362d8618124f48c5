"""Built-in prompt tags and helpers that turn selected tags into a prompt prefix."""

from __future__ import annotations

import re
from typing import Any, Iterable

from lca.schemas.tags import CustomTag, SelectedTag, TagOption, TagParameter

# name -> (category, prompt); dict order is the order prompts are joined in
BUILTIN_TAGS: dict[str, tuple[str, str]] = {
    # Identity
    "teacher": ("identity", "You are a knowledgeable teacher who explains concepts clearly and patiently."),
    "lawyer": ("identity", "You are a professional lawyer with expertise in legal matters."),
    "friend": ("identity", "You are a supportive friend who provides encouragement and practical advice."),
    "scientist": ("identity", "You are a research scientist who approaches problems methodically and evidence-based."),
    # Style
    "concise": ("style", "Keep your responses concise and under 200 words. Focus on key points only."),
    "detailed": ("style", "Provide detailed, comprehensive explanations with examples and context."),
    "humorous": ("style", "Use appropriate humor, wit, and light-heartedness in your responses."),
    "formal": ("style", "Use formal, professional language and tone throughout your response."),
    # Level
    "middle-school": ("level", "Use vocabulary and concepts appropriate for middle school students (ages 11-14)."),
    "high-school": ("level", "Use vocabulary and concepts appropriate for high school students (ages 15-18)."),
    "expert": ("level", "Use advanced, expert-level terminology and assume deep domain knowledge."),
    "beginner": ("level", "Use simple, beginner-friendly language with clear explanations."),
    # Values
    "neutral": ("values", "Maintain a neutral, unbiased perspective in your response."),
    "critical": ("values", "Provide critical analysis and question assumptions in your response."),
    "optimistic": ("values", "Maintain an optimistic, positive outlook in your response."),
    "practical": ("values", "Focus on practical, actionable applications and real-world examples."),
    # Task
    "summarize": ("task", "Summarize the main points and key takeaways."),
    "translate": ("task", "Provide accurate translation between languages. Translate into {targetLanguage}."),
    "code-generator": ("task", "Generate clean, working, well-commented code. Write it in {programmingLanguage}."),
    "debate": ("task", "Present multiple perspectives and arguments for debate."),
    "brainstorm": ("task", "Generate creative ideas and brainstorm solutions."),
}

CATEGORY_COLORS: dict[str, str] = {
    "identity": "bg-blue-100 text-blue-800 border-blue-200",
    "style": "bg-green-100 text-green-800 border-green-200",
    "level": "bg-purple-100 text-purple-800 border-purple-200",
    "values": "bg-orange-100 text-orange-800 border-orange-200",
    "task": "bg-pink-100 text-pink-800 border-pink-200",
}
DEFAULT_TAG_COLOR = "bg-gray-100 text-gray-800 border-gray-200"
CUSTOM_COLOR_CLASS = "custom-tag-color"

# Palette offered when creating a tag; picking one of these is not a "custom" colour
PALETTE_COLORS = ("#3B82F6", "#10B981", "#8B5CF6", "#F59E0B", "#EC4899")

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def get_tag_color(tag_name: str, custom_color: str | None = None) -> str:
    if custom_color:
        return CUSTOM_COLOR_CLASS
    builtin = BUILTIN_TAGS.get(tag_name)
    return CATEGORY_COLORS.get(builtin[0], DEFAULT_TAG_COLOR) if builtin else DEFAULT_TAG_COLOR


def custom_tag_style(color: str) -> dict[str, str]:
    """Inline style for a user-picked hex colour (20/40 hex alpha for fill/border)."""
    return {
        "backgroundColor": f"{color}20",
        "color": color,
        "borderColor": f"{color}40",
    }


def is_custom_color(color: str | None) -> bool:
    if not color:
        return False
    return color not in PALETTE_COLORS


def _select(name: str, label: str, options: list[tuple[str, str]]) -> TagParameter:
    return TagParameter(
        name=name,
        label=label,
        type="select",
        required=True,
        options=[TagOption(value=v, label=lbl) for v, lbl in options],
        order_index=0,
    )


def default_tag_parameters(tag_name: str) -> list[TagParameter]:
    """Parameter definitions for built-in tags that take a value."""
    if tag_name == "translate":
        return [_select("targetLanguage", "Target Language", [
            ("Chinese", "Chinese (中文)"),
            ("English", "English"),
            ("Spanish", "Spanish (Español)"),
            ("French", "French (Français)"),
            ("German", "German (Deutsch)"),
            ("Japanese", "Japanese (日本語)"),
            ("Korean", "Korean (한국어)"),
        ])]
    if tag_name == "code-generator":
        return [_select("programmingLanguage", "Programming Language", [
            (lang, lang) for lang in ("JavaScript", "TypeScript", "Python", "Java", "C++", "C#", "Go", "Rust")
        ])]
    return []


def initial_parameter_values(params: Iterable[TagParameter]) -> dict[str, Any]:
    """Pre-filled form values: the default, else False for booleans, else the first option."""
    values: dict[str, Any] = {}
    for p in params:
        if p.default_value is not None:
            values[p.name] = p.default_value
        elif p.type == "boolean":
            values[p.name] = False
        elif p.options:
            values[p.name] = p.options[0].value
        else:
            values[p.name] = ""
    return values


def missing_required(params: Iterable[TagParameter], values: dict[str, Any]) -> list[str]:
    """Labels of required parameters left empty."""
    return [
        p.label or p.name
        for p in params
        if p.required and values.get(p.name) in (None, "")
    ]


def _render_prompt(
    prompt: str, values: dict[str, Any], params: list[TagParameter],
) -> str:
    used: set[str] = set()

    def _sub(m: re.Match[str]) -> str:
        key = m.group(1)
        if key in values and values[key] not in (None, ""):
            used.add(key)
            return str(values[key])
        return m.group(0)

    text = _PLACEHOLDER_RE.sub(_sub, prompt)
    # Drop sentences whose placeholders stayed unfilled
    if _PLACEHOLDER_RE.search(text):
        text = " ".join(s for s in re.split(r"(?<=\.)\s+", text) if not _PLACEHOLDER_RE.search(s))

    labels = {p.name: p.label or p.name for p in params}
    extras = [
        f"({labels.get(k, k)}: {v})"
        for k, v in values.items()
        if k not in used and v not in (None, "")
    ]
    return " ".join([text, *extras]) if extras else text


def compose_tag_prompt(
    selected: list[SelectedTag], custom_tags: list[CustomTag] | None = None,
) -> str:
    """Join the prompts of the selected tags.

    Built-in tags come first in catalogue order, then custom tags in the
    order given. Unknown names are ignored.
    """
    by_name = {t.name: t for t in selected}
    parts: list[str] = []

    for name, (_, prompt) in BUILTIN_TAGS.items():
        if name in by_name:
            parts.append(_render_prompt(prompt, by_name[name].parameters, default_tag_parameters(name)))
    for tag in custom_tags or []:
        if tag.name in by_name and tag.name not in BUILTIN_TAGS:
            parts.append(_render_prompt(tag.prompt, by_name[tag.name].parameters, tag.parameters))

    return " ".join(p for p in parts if p)


def apply_tags(
    message: str, selected: list[SelectedTag], custom_tags: list[CustomTag] | None = None,
) -> str:
    """Prefix ``message`` with the composed tag prompt and a blank line."""
    if not selected:
        return message
    tag_prompt = compose_tag_prompt(selected, custom_tags)
    return f"{tag_prompt}\n\n{message}" if tag_prompt else message


def parse_tag_spec(spec: str) -> SelectedTag:
    """``name`` or ``name:key=value,key=value`` as typed on the command line."""
    name, _, rest = spec.partition(":")
    params: dict[str, Any] = {}
    for pair in filter(None, (p.strip() for p in rest.split(","))):
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Tag parameter must look like key=value: {pair!r}")
        params[key.strip()] = value.strip()
    if not name.strip():
        raise ValueError(f"Tag name missing in {spec!r}")
    return SelectedTag(name=name.strip(), parameters=params)
