"""Supabase connection and the error types shared by the store classes."""

from __future__ import annotations

import logging
import os
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client, create_client

from lca.schemas.config import AppConfig

logger = logging.getLogger(__name__)

# PostgREST code for ``.single()`` matching zero rows
NO_ROWS_CODE = "PGRST116"


class StoreError(Exception):
    """A Supabase request failed."""


class NotFoundError(StoreError):
    """A row that must exist was not found."""


class DuplicateTagError(StoreError):
    """The user already has a custom tag with this name."""


def create_store_client(cfg: AppConfig | None = None) -> Client:
    """Build a Supabase client from the config, falling back to the environment.

    Raises ``StoreError`` when no URL or key can be found.
    """
    url = (cfg.supabase_url if cfg else "") or os.getenv("SUPABASE_URL") or os.getenv(
        "NEXT_PUBLIC_SUPABASE_URL", ""
    )
    key = (cfg.supabase_key if cfg else "") or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv(
        "SUPABASE_ANON_KEY", ""
    )
    if not url or not key:
        raise StoreError(
            "Supabase is not configured: set supabase_url/supabase_key in the config "
            "or SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY in the environment"
        )
    return create_client(url, key)


def is_no_rows(exc: APIError) -> bool:
    return getattr(exc, "code", None) == NO_ROWS_CODE


def run_query(query: Any, action: str) -> Any:
    """Execute a PostgREST query and return ``response.data``.

    ``APIError`` is logged and re-raised as ``StoreError`` (or
    ``NotFoundError`` for a ``.single()`` that matched nothing).
    """
    try:
        response = query.execute()
    except APIError as exc:
        if is_no_rows(exc):
            raise NotFoundError(f"{action}: no matching row") from exc
        logger.error("Supabase error while trying to %s: %s", action, exc.message)
        raise StoreError(f"Failed to {action}: {exc.message}") from exc
    return response.data


class SupabaseStore:
    """Base for stores scoped to one user."""

    def __init__(self, client: Client, user_id: str) -> None:
        self.client = client
        self.user_id = user_id

    def table(self, name: str) -> Any:
        return self.client.table(name)
