"""
Shared fixtures: an in-memory stand-in for the Supabase client, a fixed
verified date and an authenticated TestClient
"""
import copy
import itertools
from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import SupabaseClient, get_current_user
from app.core.rate_limit import limiter
from app.services.clock import server_clock

TODAY = date(2025, 3, 15)
USER_ID = "user-1"
OTHER_USER_ID = "user-2"


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable query mirroring the subset of the PostgREST builder we use"""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.ordering = []
        self.row_limit = None
        self.row_range = None

    def select(self, columns="*", **kwargs):
        self.op = "select"
        return self

    def insert(self, data):
        self.op, self.payload = "insert", data
        return self

    def update(self, data):
        self.op, self.payload = "update", data
        return self

    def upsert(self, data, on_conflict=None, **kwargs):
        self.op, self.payload, self.on_conflict = "upsert", data, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] <= value)
        return self

    def gt(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] > value)
        return self

    def lt(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] < value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def range(self, start, end):
        self.row_range = (start, end)
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        if self.table in self.db.failing_tables:
            raise RuntimeError(f"{self.table} unavailable")

        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            return FakeResponse([self.db.add_row(self.table, item) for item in items])

        if self.op == "upsert":
            keys = [k.strip() for k in self.on_conflict.split(",")] if self.on_conflict else ["id"]
            for row in rows:
                if all(row.get(k) == self.payload.get(k) for k in keys):
                    row.update(copy.deepcopy(self.payload))
                    return FakeResponse([copy.deepcopy(row)])
            return FakeResponse([self.db.add_row(self.table, self.payload)])

        matched = [row for row in rows if self._matches(row)]

        if self.op == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse(copy.deepcopy(matched))

        if self.op == "delete":
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return FakeResponse(copy.deepcopy(matched))

        for column, desc in reversed(self.ordering):
            matched = sorted(matched, key=lambda r: str(r.get(column) or ""), reverse=desc)
        if self.row_range is not None:
            start, end = self.row_range
            matched = matched[start:end + 1]
        if self.row_limit is not None:
            matched = matched[:self.row_limit]
        return FakeResponse(copy.deepcopy(matched))


class FakeAuth:
    def __init__(self):
        self.tokens = {}

    def get_user(self, token):
        user = self.tokens.get(token)
        if user is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(**user))

    def get_session(self):
        return None


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failing_tables = set()
        self.auth = FakeAuth()
        self._ids = itertools.count(1)

    def table(self, name):
        return FakeQuery(self, name)

    def add_row(self, table, data):
        row = copy.deepcopy(data)
        row.setdefault("id", f"{table}-{next(self._ids):05d}")
        row.setdefault("created_at", f"{TODAY.isoformat()}T00:00:{len(self.rows(table)):02d}+05:30")
        self.tables.setdefault(table, []).append(row)
        return copy.deepcopy(row)

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def seed(self, table, *rows):
        return [self.add_row(table, row) for row in rows]


@pytest.fixture(autouse=True)
def db(monkeypatch):
    fake = FakeSupabase()
    monkeypatch.setattr(SupabaseClient, "_client", fake)
    monkeypatch.setattr(SupabaseClient, "_service_client", fake)
    yield fake


@pytest.fixture(autouse=True)
def fixed_today(monkeypatch):
    monkeypatch.setattr(server_clock, "get_verified_date", lambda: TODAY.isoformat())
    return TODAY


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    from app.services.rewards import ledger
    monkeypatch.setattr(ledger.time, "sleep", lambda seconds: None)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def user():
    return {"id": USER_ID, "email": "sadhak@example.com"}


@pytest.fixture
def client(user):
    from main import app
    app.dependency_overrides[get_current_user] = lambda: user
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def rewards_row(db):
    """Seed a rewards row for USER_ID; pass overrides through the returned factory"""
    def make(**overrides):
        row = {
            "user_id": USER_ID,
            "coins": 0,
            "gems": 0,
            "xp": 0,
            "level": 1,
            "current_streak": 0,
            "longest_streak": 0,
            "perfect_days": 0,
            "current_theme": "default",
            "current_avatar": "user",
            "unlocked_themes": ["default"],
            "unlocked_avatars": ["user"],
            "version": 1
        }
        row.update(overrides)
        return db.seed("user_rewards", row)[0]
    return make


@pytest.fixture
def habit(db):
    def make(name="Meditate", user_id=USER_ID, **overrides):
        row = {
            "user_id": user_id,
            "name": name,
            "category": "morning",
            "type": "boolean",
            "is_active": True
        }
        row.update(overrides)
        return db.seed("habits", row)[0]
    return make


def rewards_of(db, user_id=USER_ID):
    return next(r for r in db.rows("user_rewards") if r["user_id"] == user_id)
