import itertools
import os
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

# Settings load at import time; set env vars BEFORE importing huddle.main
os.environ["ENVIRONMENT"] = "test"
os.environ["SUPABASE_URL"] = "https://test.supabase.co"
os.environ["SUPABASE_KEY"] = "anon-test-key"
os.environ["S3_BUCKET_NAME"] = ""
os.environ["PUSH_API_KEY"] = ""

from fastapi.testclient import TestClient  # noqa: E402

from huddle.core.cache import ViewCache, get_view_cache  # noqa: E402
from huddle.database.supabase_client import get_supabase, get_service_supabase  # noqa: E402
from huddle.main import app  # noqa: E402
from huddle.modules.auth.service import clear_auth_cache  # noqa: E402
from huddle.modules.push.sender import PushSendResult, get_push_sender  # noqa: E402

SUPABASE_URL = os.environ["SUPABASE_URL"]

# Unique keys enforced on insert; upsert resolves conflicts on them
UNIQUE_KEYS = {
    "groups": [("invite_code",)],
    "group_members": [("group_id", "user_id")],
    "participants": [("event_id", "user_id")],
    "push_subscriptions": [("endpoint",)],
    "user_notification_settings": [("user_id",)],
}

# ON DELETE CASCADE foreign keys: parent table -> [(child table, child column)]
CASCADES = {
    "groups": [("group_members", "group_id"), ("events", "group_id"), ("announcements", "group_id")],
    "events": [("participants", "event_id"), ("event_images", "event_id")],
}

INSERT_DEFAULTS = {
    "groups": {"description": None, "image_url": None, "invite_code_expires_at": None},
    "events": {"description": None, "location": None, "response_deadline": None,
               "max_participants": None, "cost": 0},
    "announcements": {"event_id": None},
    "notification_logs": {"related_event_id": None, "read_at": None},
    "profiles": {"full_name": None, "avatar_url": None},
}


def _comparable(value):
    # timestamps compare as instants whatever their offset spelling ("Z" vs "+00:00")
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


class FakeResult:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Just enough of the PostgREST builder for the services under test"""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.count_mode = None
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.ordering = []
        self.limit_n = None

    def select(self, columns="*", count=None):
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, payload):
        self.action, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.action, self.payload = "update", payload
        return self

    def upsert(self, payload, on_conflict=None):
        self.action, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: _comparable(row.get(column)) >= _comparable(value))
        return self

    def lt(self, column, value):
        self.filters.append(lambda row: _comparable(row.get(column)) < _comparable(value))
        return self

    def is_(self, column, value):
        assert value == "null"
        self.filters.append(lambda row: row.get(column) is None)
        return self

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def _matching(self):
        return [row for row in self.db.rows(self.table) if all(f(row) for f in self.filters)]

    def _project(self, row):
        if self.columns.strip() == "*":
            return dict(row)
        return {c.strip(): row.get(c.strip()) for c in self.columns.split(",")}

    def execute(self):
        if self.table in self.db.failing:
            raise RuntimeError(f"relation {self.table} is unavailable")

        if self.action == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            return FakeResult([self.db.insert(self.table, row) for row in payload])

        if self.action == "upsert":
            return FakeResult([self.db.upsert(self.table, self.payload, self.on_conflict)])

        matched = self._matching()
        if self.action == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResult([dict(row) for row in matched])

        if self.action == "delete":
            self.db.remove_rows(self.table, matched)
            return FakeResult([dict(row) for row in matched])

        for column, desc in reversed(self.ordering):
            matched.sort(key=lambda r: (r.get(column) is None, str(r.get(column))), reverse=desc)
        count = len(matched) if self.count_mode == "exact" else None
        if self.limit_n is not None:
            matched = matched[:self.limit_n]
        return FakeResult([self._project(row) for row in matched], count)


class FakeAuth:
    def __init__(self, db):
        self.db = db

    def get_user(self, jwt=None):
        user = self.db.tokens.get(jwt)
        if user is None:
            raise RuntimeError("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def exchange_code_for_session(self, params):
        user = self.db.auth_codes.get(params["auth_code"])
        if user is None:
            raise RuntimeError("invalid flow state, no valid flow state found")
        return SimpleNamespace(
            user=user,
            session=SimpleNamespace(access_token=f"token-{user.id}", refresh_token="refresh-token")
        )

    def sign_out(self):
        return None


class FakeBucket:
    def __init__(self, db, name):
        self.db = db
        self.name = name

    def upload(self, path, file, file_options=None):
        self.db.objects[(self.name, path)] = file
        return SimpleNamespace(path=path)

    def remove(self, paths):
        for path in paths:
            self.db.objects.pop((self.name, path), None)
        return []

    def get_public_url(self, path):
        return f"{SUPABASE_URL}/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self, db):
        self.db = db

    def from_(self, bucket):
        return FakeBucket(self.db, bucket)


class FakeSupabase:
    """In-memory stand-in for the supabase Client"""

    def __init__(self):
        self.tables = {}
        self.tokens = {}
        self.auth_codes = {}
        self.objects = {}
        self.failing = set()
        self._clock = itertools.count()
        self._epoch = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.auth = FakeAuth(self)
        self.storage = FakeStorage(self)

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def now(self) -> str:
        # strictly increasing so created_at ordering is deterministic
        return (self._epoch + timedelta(seconds=next(self._clock))).isoformat()

    def _check_unique(self, table, row, ignore=None):
        for key in UNIQUE_KEYS.get(table, []):
            for existing in self.rows(table):
                if existing is ignore:
                    continue
                if all(existing.get(c) == row.get(c) for c in key):
                    raise RuntimeError(f'duplicate key value violates unique constraint on {table} {key}')

    def insert(self, table, row):
        stored = {**INSERT_DEFAULTS.get(table, {}), **row}
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", self.now())
        if table == "group_members":
            stored.setdefault("joined_at", stored["created_at"])
        if table == "notification_logs":
            stored.setdefault("sent_at", stored["created_at"])
        self._check_unique(table, stored)
        self.rows(table).append(stored)
        return dict(stored)

    def upsert(self, table, row, on_conflict=None):
        columns = [c.strip() for c in (on_conflict or "id").split(",")]
        for existing in self.rows(table):
            if all(existing.get(c) == row.get(c) for c in columns):
                existing.update(row)
                return dict(existing)
        return self.insert(table, row)

    def remove_rows(self, table, doomed):
        ids = {id(row) for row in doomed}
        self.tables[table] = [r for r in self.rows(table) if id(r) not in ids]
        for child, column in CASCADES.get(table, []):
            keys = {row["id"] for row in doomed}
            self.remove_rows(child, [r for r in self.rows(child) if r.get(column) in keys])

    def add_user(self, name: str, email: str = None, metadata: dict = None, profile: bool = True):
        user_id = str(uuid.uuid4())
        email = email or f"{name}@example.com"
        user = SimpleNamespace(
            id=user_id,
            email=email,
            user_metadata=metadata or {},
            app_metadata={},
            created_at=self.now(),
        )
        token = f"token-{user_id}"
        self.tokens[token] = user
        if profile:
            self.insert("profiles", {"id": user_id, "email": email, "full_name": name.title()})
        return SimpleNamespace(
            id=user_id,
            name=name,
            email=email,
            token=token,
            headers={"Authorization": f"Bearer {token}"},
            auth_user=user,
        )

    def find(self, table, **where):
        return [dict(r) for r in self.rows(table) if all(r.get(k) == v for k, v in where.items())]


class FakePushSender:
    """Records every send; per-endpoint status codes simulate push service replies"""

    def __init__(self):
        self.sent = []
        self.statuses = {}
        self.raising = set()

    def send(self, subscription, payload):
        endpoint = subscription["endpoint"]
        if endpoint in self.raising:
            raise RuntimeError("connection reset by push service")
        self.sent.append((subscription, payload))
        status = self.statuses.get(endpoint, 201)
        return PushSendResult(
            subscription_id=subscription.get("id"),
            user_id=subscription.get("user_id"),
            success=status < 400,
            status_code=status,
            error=None if status < 400 else f"Push failed: {status}",
        )


def in_days(days: float) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def push_sender():
    return FakePushSender()


@pytest.fixture
def view_cache():
    return ViewCache()


@pytest.fixture
def client(fake_db, push_sender, view_cache):
    app.dependency_overrides[get_supabase] = lambda: fake_db
    app.dependency_overrides[get_service_supabase] = lambda: fake_db
    app.dependency_overrides[get_push_sender] = lambda: push_sender
    app.dependency_overrides[get_view_cache] = lambda: view_cache
    clear_auth_cache()

    yield TestClient(app)

    app.dependency_overrides.clear()
    clear_auth_cache()


@pytest.fixture
def group(client, fake_db):
    """A group with an owner, an admin and a plain member, plus an outsider"""
    owner = fake_db.add_user("olivia")
    admin = fake_db.add_user("adam")
    member = fake_db.add_user("mia")
    outsider = fake_db.add_user("oscar")

    created = client.post("/api/v1/groups", json={"name": "Tuesday Runners"}, headers=owner.headers)
    assert created.status_code == 201, created.text
    data = created.json()["data"]

    for user in (admin, member):
        joined = client.post("/api/v1/groups/join", json={"invite_code": data["invite_code"]}, headers=user.headers)
        assert joined.status_code == 200, joined.text

    admin_row = fake_db.find("group_members", group_id=data["id"], user_id=admin.id)[0]
    promoted = client.put(
        f"/api/v1/groups/{data['id']}/members/{admin_row['id']}/role",
        json={"role": "admin"},
        headers=owner.headers,
    )
    assert promoted.status_code == 200, promoted.text

    return SimpleNamespace(
        id=data["id"],
        invite_code=data["invite_code"],
        owner=owner,
        admin=admin,
        member=member,
        outsider=outsider,
    )


@pytest.fixture
def make_event(client, group):
    def _make_event(headers=None, **fields):
        body = {"title": "Trail run", "event_date": in_days(7), **fields}
        response = client.post(
            f"/api/v1/groups/{group.id}/events", json=body, headers=headers or group.owner.headers
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _make_event
