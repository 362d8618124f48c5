"""System prompt and template section lists for knowledge card generation."""

TEMPLATE_SECTIONS: dict[str, tuple[str, ...]] = {
    "basic": ("core_concept", "key_points", "examples"),
    "detailed": (
        "core_concept", "key_points", "examples",
        "related_concepts", "memory_tips", "practice_questions",
    ),
    "visual": ("core_concept", "key_points", "examples", "memory_tips"),
    "minimal": ("core_concept", "key_points"),
}

TEMPLATE_DESCRIPTIONS: dict[str, str] = {
    "basic": "Simple, clean layout with essential information",
    "detailed": "Comprehensive information with all sections",
    "visual": "Rich formatting with icons and visual elements",
    "minimal": "Essential information only, concise format",
}

SECTION_HINTS: dict[str, str] = {
    "core_concept": "one or two sentences stating the central idea",
    "key_points": "3-5 short bullet-style statements",
    "examples": "1-3 concrete examples taken from or implied by the text",
    "related_concepts": "2-4 neighbouring concepts worth studying next",
    "memory_tips": "2-3 mnemonics or memory strategies",
    "practice_questions": "2-3 self-test questions",
}

SYSTEM_PROMPT = """\
You are a Knowledge Card writer for a learning companion.

## Role
Turn one assistant chat message into a compact study card the learner can \
review later.

## Rules
- Use only information present in (or directly implied by) the message.
- Keep every entry short; cards are for review, not re-reading the answer.
- `title` is at most 50 characters.
- `tags` are 2-4 lowercase topic keywords.
- Leave a section as an empty list when it is not requested below.

## Output Format
Return a single JSON object:
```json
{
  "title": "...",
  "content": {
    "core_concept": "...",
    "key_points": ["..."],
    "examples": ["..."],
    "related_concepts": ["..."],
    "memory_tips": ["..."],
    "practice_questions": ["..."]
  },
  "tags": ["..."]
}
```
"""


def build_card_request(message_content: str, template: str, custom_sections: list[str]) -> str:
    sections = TEMPLATE_SECTIONS.get(template, TEMPLATE_SECTIONS["basic"])
    lines = [
        f"Template: {template} ({TEMPLATE_DESCRIPTIONS.get(template, '')})",
        "Fill these sections:",
        *(f"- {s}: {SECTION_HINTS[s]}" for s in sections),
    ]
    if custom_sections:
        lines.append("Also emphasise: " + ", ".join(custom_sections))
    lines += ["", "Message:", message_content]
    return "\n".join(lines)
