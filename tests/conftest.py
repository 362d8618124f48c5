"""Shared test fixtures, including an in-memory stand-in for the Supabase client."""

from __future__ import annotations

import copy
import itertools
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from postgrest.exceptions import APIError

from lca.shared.llm_client import LLMClient
from lca.store.learning import LearningStore
from lca.store.tags import TagStore

USER_ID = "user-1"


def mock_openai_response(content: str) -> SimpleNamespace:
    """Fake chat.completions.create result with the given text."""
    message = SimpleNamespace(content=content)
    usage = SimpleNamespace(prompt_tokens=10, completion_tokens=20)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=usage)


class FakeStream:
    """Async iterator of streamed completion chunks."""

    def __init__(self, parts: list[str]) -> None:
        self._chunks = [
            SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=p))]) for p in parts
        ]

    def __aiter__(self) -> "FakeStream":
        self._iter = iter(self._chunks)
        return self

    async def __anext__(self) -> SimpleNamespace:
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


# ----------------------------------------------------------------------
# In-memory Supabase
# ----------------------------------------------------------------------


class FakeQuery:
    """Just enough of the PostgREST request builder for the store classes."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload: Any = None
        self.on_conflict: str | None = None
        self.filters: list[tuple[str, str, Any]] = []
        self.order_by: tuple[str, bool] | None = None
        self.row_limit: int | None = None
        self.want_single = False

    def select(self, columns: str = "*") -> "FakeQuery":
        self.op, self.columns = "select", columns
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self.op, self.payload = "insert", payload
        return self

    def upsert(self, payload: Any, on_conflict: str = "id") -> "FakeQuery":
        self.op, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def update(self, payload: dict[str, Any]) -> "FakeQuery":
        self.op, self.payload = "update", payload
        return self

    def delete(self) -> "FakeQuery":
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("eq", column, value))
        return self

    def in_(self, column: str, values: list[Any]) -> "FakeQuery":
        self.filters.append(("in", column, list(values)))
        return self

    def gte(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("gte", column, value))
        return self

    def lte(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("lte", column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.order_by = (column, desc)
        return self

    def limit(self, n: int) -> "FakeQuery":
        self.row_limit = n
        return self

    def single(self) -> "FakeQuery":
        self.want_single = True
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        for op, column, value in self.filters:
            cell = row.get(column)
            if op == "eq" and cell != value:
                return False
            if op == "in" and cell not in value:
                return False
            if op == "gte" and (cell is None or cell < value):
                return False
            if op == "lte" and (cell is None or cell > value):
                return False
        return True

    def _with_relations(self, row: dict[str, Any]) -> dict[str, Any]:
        out = copy.deepcopy(row)
        if "parameters:tag_parameters" in self.columns:
            out["parameters"] = [
                copy.deepcopy(p) for p in self.db.tables["tag_parameters"] if p.get("tag_id") == row.get("id")
            ]
        return out

    def execute(self) -> SimpleNamespace:
        self.db.calls.append((self.table, self.op))
        if self.table in self.db.errors:
            raise self.db.errors.pop(self.table)

        rows = self.db.tables[self.table]
        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            data = [self.db.add_row(self.table, item) for item in items]
        elif self.op == "upsert":
            key = self.on_conflict or "id"
            existing = next((r for r in rows if r.get(key) == self.payload.get(key)), None)
            if existing is not None:
                existing.update(copy.deepcopy(self.payload))
                data = [copy.deepcopy(existing)]
            else:
                data = [self.db.add_row(self.table, self.payload)]
        elif self.op == "update":
            matched = [r for r in rows if self._matches(r)]
            for r in matched:
                r.update(copy.deepcopy(self.payload))
            data = [copy.deepcopy(r) for r in matched]
        elif self.op == "delete":
            matched = [r for r in rows if self._matches(r)]
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            data = matched
        else:
            data = [self._with_relations(r) for r in rows if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                data.sort(key=lambda r: r.get(column) or "", reverse=desc)
            if self.row_limit is not None:
                data = data[: self.row_limit]

        if self.want_single:
            if len(data) != 1:
                raise APIError({
                    "code": "PGRST116",
                    "message": "JSON object requested, multiple (or no) rows returned",
                    "details": f"The result contains {len(data)} rows",
                    "hint": None,
                })
            return SimpleNamespace(data=data[0])
        return SimpleNamespace(data=data)


class FakeSupabase:
    """Tables are plain lists of dicts; ``errors[table]`` fails the next request on it."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.errors: dict[str, APIError] = {}
        self.calls: list[tuple[str, str]] = []
        self._ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        self.tables.setdefault(name, [])
        self.tables.setdefault("tag_parameters", [])
        return FakeQuery(self, name)

    def add_row(self, table: str, item: dict[str, Any]) -> dict[str, Any]:
        n = next(self._ids)
        row = copy.deepcopy(item)
        row.setdefault("id", f"{table}-{n}")
        row.setdefault("created_at", f"2026-01-01T00:00:{n:02d}+00:00")
        self.tables[table].append(row)
        return copy.deepcopy(row)

    def seed(self, table: str, *rows: dict[str, Any]) -> None:
        self.tables.setdefault(table, [])
        for row in rows:
            self.add_row(table, row)


def api_error(message: str = "boom", code: str = "500") -> APIError:
    return APIError({"code": code, "message": message, "details": None, "hint": None})


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def learning_store(fake_db: FakeSupabase) -> LearningStore:
    return LearningStore(fake_db, USER_ID)


@pytest.fixture
def tag_store(fake_db: FakeSupabase) -> TagStore:
    return TagStore(fake_db, USER_ID)


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    cfg = tmp_path / "lca.yml"
    cfg.write_text(
        """\
user_id: "{user}"
supabase_url: "https://example.supabase.co"
supabase_key: "test-key"
output_directory: "{out}"
""".format(user=USER_ID, out=str(tmp_path / "output"))
    )
    return cfg


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Return an LLMClient with a mocked OpenAI SDK underneath."""
    client = LLMClient.__new__(LLMClient)
    client._client = AsyncMock()
    client.model = "gpt-4o-mini"
    return client
