"""Fake in-memory Supabase client for gateway and pipeline testing.

Supports the subset of the postgrest/storage builder API the gateway uses:
select/insert/update/delete with eq, ilike, or_ (ilike terms), order,
limit and execute, plus storage upload/get_public_url.
"""

import re
from dataclasses import dataclass
from typing import Any
from uuid import uuid4


@dataclass
class FakeResponse:
    data: list[dict[str, Any]]


def _like_to_regex(pattern: str) -> re.Pattern:
    out = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "\\")))
        elif ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("^" + "".join(out) + "$", re.IGNORECASE | re.DOTALL)


class FakeQuery:
    """One chained request against a table."""

    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._action = "select"
        self._payload: dict[str, Any] | None = None
        self._filters: list = []
        self._orders: list[tuple[str, bool]] = []
        self._limit: int | None = None

    # -- actions --------------------------------------------------------

    def select(self, *_columns: str) -> "FakeQuery":
        self._action = "select"
        return self

    def insert(self, payload: dict[str, Any]) -> "FakeQuery":
        self._action = "insert"
        self._payload = payload
        return self

    def update(self, payload: dict[str, Any]) -> "FakeQuery":
        self._action = "update"
        self._payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self._action = "delete"
        return self

    # -- filters --------------------------------------------------------

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        regex = _like_to_regex(pattern)
        self._filters.append(lambda row: regex.match(str(row.get(column) or "")) is not None)
        return self

    def or_(self, expression: str) -> "FakeQuery":
        terms = []
        for term in expression.split(","):
            column, operator, pattern = term.split(".", 2)
            assert operator == "ilike", f"Unsupported or_ operator {operator}"
            terms.append((column, _like_to_regex(pattern)))
        self._filters.append(
            lambda row: any(regex.match(str(row.get(col) or "")) for col, regex in terms)
        )
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._orders.append((column, desc))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    # -- execution ------------------------------------------------------

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(f(row) for f in self._filters)

    def execute(self) -> FakeResponse:
        if self._db.fail_with is not None:
            raise self._db.fail_with

        rows = self._db.tables.setdefault(self._table, [])

        if self._action == "insert":
            row = {"id": str(uuid4()), "created_at": self._db.next_timestamp(), **self._payload}
            rows.append(row)
            return FakeResponse(data=[dict(row)])

        matched = [r for r in rows if self._matches(r)]

        if self._action == "update":
            for row in matched:
                row.update(self._payload)
            return FakeResponse(data=[dict(r) for r in matched])

        if self._action == "delete":
            self._db.tables[self._table] = [r for r in rows if not self._matches(r)]
            return FakeResponse(data=[dict(r) for r in matched])

        # Stable sorts applied last key first give multi-column ordering
        for column, desc in reversed(self._orders):
            matched.sort(
                key=lambda r: (r.get(column) is None, r.get(column) if r.get(column) is not None else ""),
                reverse=desc,
            )
        if self._limit is not None:
            matched = matched[: self._limit]
        return FakeResponse(data=[dict(r) for r in matched])


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self._storage = storage
        self._name = name

    def upload(self, path: str, file: bytes, file_options: dict | None = None) -> dict:
        self._storage.objects[(self._name, path)] = file
        self._storage.options[(self._name, path)] = file_options or {}
        return {"path": path}

    def get_public_url(self, path: str) -> str:
        return f"https://test.supabase.co/storage/v1/object/public/{self._name}/{path}"


class FakeStorage:
    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.options: dict[tuple[str, str], dict] = {}

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeSupabase:
    """Stand-in for ``supabase.Client`` backed by dict rows."""

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None):
        self.tables: dict[str, list[dict[str, Any]]] = {
            name: [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }
        self.storage = FakeStorage()
        self.fail_with: Exception | None = None
        self._clock = 0

    def next_timestamp(self) -> str:
        self._clock += 1
        return f"2026-01-01T00:{self._clock // 60:02d}:{self._clock % 60:02d}+00:00"

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)
