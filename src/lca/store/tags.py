"""Supabase persistence for custom tags and their parameters."""

from __future__ import annotations

import logging
from typing import Any

from lca.schemas.tags import CustomTag, TagParameter
from lca.store.base import DuplicateTagError, NotFoundError, SupabaseStore, run_query

logger = logging.getLogger(__name__)

_TAG_WITH_PARAMS = "*, parameters:tag_parameters(*)"


def _normalize_parameters(params: list[dict[str, Any]] | None) -> list[TagParameter]:
    return [
        TagParameter.model_validate({
            **p,
            "required": p.get("required") or False,
            "order_index": p.get("order_index") or 0,
        })
        for p in params or []
    ]


def _to_tag(row: dict[str, Any]) -> CustomTag:
    return CustomTag.model_validate({**row, "parameters": _normalize_parameters(row.get("parameters"))})


class TagStore(SupabaseStore):
    """CRUD for ``custom_tags`` and ``tag_parameters`` of one user."""

    def list_tags(self) -> list[CustomTag]:
        """Custom tags with nested parameters, newest first."""
        data = run_query(
            self.table("custom_tags")
            .select(_TAG_WITH_PARAMS)
            .eq("user_id", self.user_id)
            .order("created_at", desc=True),
            "fetch custom tags",
        )
        return [_to_tag(row) for row in data or []]

    def get_tag(self, tag_id: str) -> CustomTag | None:
        try:
            row = run_query(
                self.table("custom_tags")
                .select(_TAG_WITH_PARAMS)
                .eq("id", tag_id)
                .eq("user_id", self.user_id)
                .single(),
                "fetch custom tag",
            )
        except NotFoundError:
            return None
        return _to_tag(row)

    def tag_name_exists(self, name: str) -> bool:
        data = run_query(
            self.table("custom_tags").select("id").eq("user_id", self.user_id).eq("name", name),
            "check custom tag name",
        )
        return bool(data)

    def create_tag(self, tag: CustomTag) -> CustomTag:
        """Insert the tag, then its parameters (if any)."""
        if self.tag_name_exists(tag.name):
            raise DuplicateTagError(f"Tag name already exists: {tag.name}")

        row = tag.model_dump(exclude={"id", "parameters", "created_at", "updated_at"}, exclude_none=True)
        row["user_id"] = self.user_id
        data = run_query(self.table("custom_tags").insert(row), "create custom tag")
        created = CustomTag.model_validate(data[0])
        logger.info("Created custom tag %r (%s)", created.name, created.id)

        if tag.parameters and created.id:
            created.parameters = self.create_parameters(created.id, tag.parameters)
        return created

    def update_tag(self, tag_id: str, **updates: Any) -> CustomTag:
        data = run_query(
            self.table("custom_tags").update(updates).eq("id", tag_id).eq("user_id", self.user_id),
            "update custom tag",
        )
        if not data:
            raise NotFoundError(f"Custom tag not found: {tag_id}")
        return CustomTag.model_validate(data[0])

    def delete_tag(self, tag_id: str) -> None:
        run_query(
            self.table("custom_tags").delete().eq("id", tag_id).eq("user_id", self.user_id),
            "delete custom tag",
        )

    def create_parameters(self, tag_id: str, parameters: list[TagParameter]) -> list[TagParameter]:
        rows = [
            {**p.model_dump(exclude={"id", "tag_id"}, exclude_none=True, mode="json"), "tag_id": tag_id}
            for p in parameters
        ]
        data = run_query(self.table("tag_parameters").insert(rows), "create tag parameters")
        return _normalize_parameters(data)

    def replace_parameters(self, tag_id: str, parameters: list[TagParameter]) -> list[TagParameter]:
        """Delete every parameter of the tag, then insert the new list."""
        run_query(
            self.table("tag_parameters").delete().eq("tag_id", tag_id),
            "delete existing tag parameters",
        )
        if not parameters:
            return []
        return self.create_parameters(tag_id, parameters)

    def parameters_by_tag_name(self, name: str) -> list[TagParameter]:
        """Parameters of the user's tag called ``name``; empty if there is no such tag."""
        try:
            row = run_query(
                self.table("custom_tags")
                .select("parameters:tag_parameters(*)")
                .eq("name", name)
                .eq("user_id", self.user_id)
                .single(),
                "fetch tag parameters by name",
            )
        except NotFoundError:
            return []
        return _normalize_parameters((row or {}).get("parameters"))
