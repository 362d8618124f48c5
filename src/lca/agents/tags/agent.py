"""Drafts the description and prompt for a new custom tag."""

from __future__ import annotations

import json
import logging
from typing import Iterable

from lca.agents.base import BaseAgent, extract_json
from lca.agents.tags.prompts import SYSTEM_PROMPT, build_tag_request
from lca.schemas.tags import GeneratedTag
from lca.shared.llm_client import LLMClient
from lca.store.base import DuplicateTagError
from lca.store.tags import TagStore

logger = logging.getLogger(__name__)

TAG_TEMPERATURE = 0.5
TAG_MAX_TOKENS = 300


def template_tag(name: str, category: str) -> GeneratedTag:
    return GeneratedTag(
        description=f"AI acts as a {name} specialist",
        prompt=f"You are a professional {name} with expertise in {category} matters.",
    )


class TagGeneratorAgent(BaseAgent):
    def __init__(
        self,
        client: LLMClient,
        *,
        store: TagStore | None = None,
        model: str | None = None,
    ) -> None:
        super().__init__(client)
        self.store = store
        self.model = model

    @property
    def name(self) -> str:
        return "Tag Generator"

    def get_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def parse_output(self, raw_text: str) -> GeneratedTag:
        data = extract_json(raw_text)
        description = str(data.get("description") or "").strip()
        prompt = str(data.get("prompt") or "").strip()
        if not description or not prompt:
            raise ValueError("Tag response needs both 'description' and 'prompt'")
        return GeneratedTag(description=description, prompt=prompt)

    def _check_duplicate(self, name: str, existing_names: Iterable[str] | None) -> None:
        if existing_names is not None:
            taken = name in set(existing_names)
        elif self.store is not None:
            taken = self.store.tag_name_exists(name)
        else:
            taken = False
        if taken:
            raise DuplicateTagError(f"Tag with this name already exists: {name}")

    async def generate(
        self,
        name: str,
        category: str,
        *,
        existing_names: Iterable[str] | None = None,
    ) -> GeneratedTag:
        """Description and prompt for ``name``; the fixed template on unusable output.

        Raises ``DuplicateTagError`` when the user already has a tag called ``name``.
        """
        name, category = name.strip(), category.strip()
        if not name or not category:
            raise ValueError("Tag name and category are required")
        self._check_duplicate(name, existing_names)

        try:
            return await self._complete_with_retry(
                self.get_system_prompt(),
                build_tag_request(name, category),
                self.parse_output,
                model=self.model,
                temperature=TAG_TEMPERATURE,
                max_tokens=TAG_MAX_TOKENS,
            )
        except (ValueError, json.JSONDecodeError, KeyError) as exc:
            logger.warning("Falling back to template tag for %r: %s", name, exc)
            return template_tag(name, category)
