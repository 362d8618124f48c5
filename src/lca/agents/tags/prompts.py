"""Prompt for drafting a custom prompt tag from its name and category."""

SYSTEM_PROMPT = """\
You write reusable prompt tags for a learning chat assistant. A prompt tag is a short \
instruction that gets prepended to the user's message to steer how the assistant behaves.

Given a tag name and a category, write:
- description: one short sentence a user would read in the tag picker
- prompt: one or two sentences addressed to the assistant ("You are ...", "Answer ...")

Keep the prompt specific to the tag name. Do not mention the tag itself.

Output a single JSON object: {"description": "...", "prompt": "..."}"""


def build_tag_request(name: str, category: str) -> str:
    return f"Tag name: {name}\nCategory: {category}\n\nWrite the description and prompt for this tag."
