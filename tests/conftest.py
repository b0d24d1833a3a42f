import copy
import itertools
import re
from types import SimpleNamespace
from typing import Any, Callable

import pytest

# embedded relation -> foreign key column pointing back at the parent row
EMBED_KEYS = {"food_truck_locations": "food_truck_id"}


class FakeQuery:
    """Just enough of the PostgREST query builder for the repositories."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table_name = table
        self.op = "select"
        self.embeds: list[str] = []
        self.filters: list[Callable[[dict], bool]] = []
        self.payload: Any = None
        self.on_conflict = "id"
        self._limit: int | None = None

    def select(self, columns: str = "*", count: str | None = None) -> "FakeQuery":
        self.embeds = re.findall(r"(\w+)(?:!inner)?\(\*\)", columns)
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def gte(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) >= value)
        return self

    def gt(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) > value)
        return self

    def in_(self, column: str, values: list) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload: dict) -> "FakeQuery":
        self.op, self.payload = "update", payload
        return self

    def upsert(self, payload: Any, on_conflict: str = "id") -> "FakeQuery":
        self.op, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self) -> "FakeQuery":
        self.op = "delete"
        return self

    def _matching(self) -> list[dict]:
        return [row for row in self.db.rows(self.table_name) if all(check(row) for check in self.filters)]

    def execute(self) -> SimpleNamespace:
        self.db.calls.append((self.table_name, self.op))
        failure = self.db.pop_failure(self.table_name, self.op)
        if failure is not None:
            raise failure

        rows = self.db.rows(self.table_name)
        if self.op == "select":
            result = [copy.deepcopy(row) for row in self._matching()]
            for embed in self.embeds:
                key = EMBED_KEYS[embed]
                for row in result:
                    row[embed] = [copy.deepcopy(child) for child in self.db.rows(embed) if child.get(key) == row.get("id")]
            if self._limit is not None:
                result = result[: self._limit]
            return SimpleNamespace(data=result, count=len(result))

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in items:
                row = dict(item)
                row.setdefault("id", self.db.next_id(self.table_name))
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted, count=len(inserted))

        if self.op == "update":
            updated = []
            for row in self._matching():
                row.update(self.payload)
                updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated, count=len(updated))

        if self.op == "upsert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            stored = []
            for item in items:
                existing = next((row for row in rows if row.get(self.on_conflict) == item.get(self.on_conflict)), None)
                if existing is None:
                    existing = dict(item)
                    rows.append(existing)
                else:
                    existing.update(item)
                stored.append(copy.deepcopy(existing))
            return SimpleNamespace(data=stored, count=len(stored))

        if self.op == "delete":
            doomed = self._matching()
            self.db.tables[self.table_name] = [row for row in rows if row not in doomed]
            return SimpleNamespace(data=[copy.deepcopy(row) for row in doomed], count=len(doomed))

        raise AssertionError(f"unsupported operation {self.op}")


class FakeAuth:
    def __init__(self) -> None:
        self.users: dict[str, dict] = {}
        self._ids = itertools.count(1)

    def add_user(
        self, email: str, password: str, user_id: str | None = None, confirmed: bool = True, **metadata
    ) -> SimpleNamespace:
        user = SimpleNamespace(
            id=user_id or f"sb-{next(self._ids)}",
            email=email,
            email_confirmed_at="2025-01-01T00:00:00Z" if confirmed else None,
            user_metadata=metadata,
        )
        self.users[email] = {"password": password, "user": user}
        return user

    def sign_in_with_password(self, credentials: dict) -> SimpleNamespace:
        record = self.users.get(credentials["email"])
        if record is None or record["password"] != credentials["password"]:
            raise Exception("Invalid login credentials")
        user = record["user"]
        return SimpleNamespace(user=user, session=SimpleNamespace(access_token=f"token-{user.id}"))

    def get_user(self, jwt: str) -> SimpleNamespace:
        for record in self.users.values():
            if jwt == f"token-{record['user'].id}":
                return SimpleNamespace(user=record["user"])
        raise Exception("invalid JWT: unable to parse or verify signature")

    def sign_up(self, credentials: dict) -> SimpleNamespace:
        if credentials["email"] in self.users:
            raise Exception("User already registered")
        metadata = credentials.get("options", {}).get("data", {})
        user = self.add_user(credentials["email"], credentials["password"], confirmed=False, **metadata)
        return SimpleNamespace(user=user, session=None)


class FakeSupabase:
    """In-memory stand-in for ``supabase.Client``."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict]] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: list[tuple[str, str, Exception]] = []
        self.auth = FakeAuth()
        self._ids = itertools.count(1)

    def rows(self, table: str) -> list[dict]:
        return self.tables.setdefault(table, [])

    def next_id(self, table: str) -> str:
        return f"{table}-{next(self._ids)}"

    def fail(self, table: str, op: str, error: Exception, times: int = 1) -> None:
        self.failures.extend([(table, op, error)] * times)

    def pop_failure(self, table: str, op: str) -> Exception | None:
        for index, (fail_table, fail_op, error) in enumerate(self.failures):
            if fail_table == table and fail_op == op:
                del self.failures[index]
                return error
        return None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def fake_supabase(monkeypatch: pytest.MonkeyPatch) -> FakeSupabase:
    from truckmap.api.routes import health
    from truckmap.data import trucks_repository
    from truckmap.services import analytics, favorites, security

    client = FakeSupabase()
    for module in (health, trucks_repository, analytics, favorites, security):
        monkeypatch.setattr(module, "get_supabase_client", lambda: client)
    return client


@pytest.fixture
def no_supabase(monkeypatch: pytest.MonkeyPatch) -> None:
    from truckmap.api.routes import health
    from truckmap.data import trucks_repository
    from truckmap.services import analytics, favorites, security

    for module in (health, trucks_repository, analytics, favorites, security):
        monkeypatch.setattr(module, "get_supabase_client", lambda: None)
