"""Pytest shared fixtures: in-memory Supabase fakes and a Flask test client."""
import os
import pathlib
import sys
import tempfile
import uuid
from collections import defaultdict
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("DEMO_MODE", "true")
os.environ.setdefault("FLASK_SESSION_COOKIE_SECURE", "false")
os.environ.setdefault("FLASK_SESSION_DIR", os.path.join(tempfile.gettempdir(), "storeadmin_test_session"))
os.environ.setdefault("AUDIT_LOG_DIR", os.path.join(tempfile.gettempdir(), "storeadmin_test_audit"))

import pytest
import requests

from storeadmin.core.supabase import (
    IdentityAlreadyExistsError,
    InvalidSessionError,
    SupabaseAPIError,
)
from storeadmin.flask_app import create_app


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Fail loudly if a unit test reaches for the real Supabase API."""

    def _refuse(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected network access in tests: {url}")

    for name in ("get", "post", "put", "patch", "delete"):
        monkeypatch.setattr(requests, name, _refuse)


@pytest.fixture(autouse=True)
def audit_dir(monkeypatch, tmp_path):
    """Isolated audit trail per test."""
    directory = tmp_path / "audit"
    monkeypatch.setenv("AUDIT_LOG_DIR", str(directory))
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key-for-audit-trail")
    return directory


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Supabase fakes
# ─────────────────────────────────────────────────────────────────────────────
class FakeIdentityProvider:
    """Stands in for IdentityService; identities and tokens live in dicts."""

    def __init__(self):
        self.identities: dict[str, dict] = {}
        self.tokens: dict[str, str] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple] = []

    def fail_on(self, operation: str, status: int = 500, message: str = "provider error"):
        self.failures[operation] = SupabaseAPIError(status, message, f"/auth/v1/{operation}")

    def _maybe_fail(self, operation: str):
        if operation in self.failures:
            raise self.failures[operation]

    def add_identity(self, email: str, password: str = "secret", user_id: Optional[str] = None) -> str:
        user_id = user_id or str(uuid.uuid4())
        self.identities[user_id] = {"id": user_id, "email": email, "password": password, "user_metadata": {}}
        return user_id

    def issue_token(self, user_id: str) -> str:
        token = f"token-{user_id}"
        self.tokens[token] = user_id
        return token

    def _by_email(self, email: str) -> Optional[dict]:
        return next((i for i in self.identities.values() if i["email"] == email), None)

    def authenticate(self, email, password):
        self.calls.append(("authenticate", email))
        self._maybe_fail("authenticate")
        identity = self._by_email(email)
        if not identity or identity["password"] != password:
            raise SupabaseAPIError(400, "Invalid login credentials", "/auth/v1/token")
        token = self.issue_token(identity["id"])
        return {"access_token": token, "user": {"id": identity["id"], "email": email}}

    def resolve_session(self, access_token):
        self.calls.append(("resolve_session", access_token))
        user_id = self.tokens.get(access_token)
        if not user_id or user_id not in self.identities:
            raise InvalidSessionError("invalid JWT")
        identity = self.identities[user_id]
        return {"id": user_id, "email": identity["email"], "user_metadata": identity["user_metadata"]}

    def create_identity(self, email, password, user_metadata=None):
        self.calls.append(("create_identity", email))
        self._maybe_fail("create_identity")
        if self._by_email(email):
            raise IdentityAlreadyExistsError("A user with this email address has already been registered")
        user_id = self.add_identity(email, password)
        self.identities[user_id]["user_metadata"] = user_metadata or {}
        return {"id": user_id, "email": email}

    def update_identity(self, user_id, attributes):
        self.calls.append(("update_identity", user_id, dict(attributes)))
        self._maybe_fail("update_identity")
        self.identities[user_id].update(attributes)
        return dict(self.identities[user_id])

    def delete_identity(self, user_id):
        self.calls.append(("delete_identity", user_id))
        self._maybe_fail("delete_identity")
        self.identities.pop(user_id, None)


class FakeTableStore:
    """Stands in for TableService; rows are dicts grouped by table name."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = defaultdict(list)
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple] = []

    def fail_on(self, operation: str, table: str, status: int = 500, message: str = "database error"):
        self.failures[(operation, table)] = SupabaseAPIError(status, message, f"/rest/v1/{table}")

    def _maybe_fail(self, operation: str, table: str):
        if (operation, table) in self.failures:
            raise self.failures[(operation, table)]

    def seed(self, table: str, *rows: dict):
        self.tables[table].extend(dict(row) for row in rows)

    @staticmethod
    def _matches(row: dict, eq: Optional[dict], in_: Optional[dict]) -> bool:
        for column, value in (eq or {}).items():
            if row.get(column) != value:
                return False
        for column, values in (in_ or {}).items():
            if row.get(column) not in list(values):
                return False
        return True

    @staticmethod
    def _project(row: dict, columns: str) -> dict:
        if columns == "*":
            return dict(row)
        return {name: row.get(name) for name in columns.split(",")}

    def select(self, table, columns="*", *, eq=None, in_=None, order=None, limit=None):
        self.calls.append(("select", table, columns, eq, in_, order))
        self._maybe_fail("select", table)
        rows = [row for row in self.tables[table] if self._matches(row, eq, in_)]
        if order:
            column, _, direction = order.partition(".")
            rows = sorted(rows, key=lambda r: r.get(column), reverse=direction == "desc")
        if limit is not None:
            rows = rows[:limit]
        return [self._project(row, columns) for row in rows]

    def select_one(self, table, columns="*", *, eq=None):
        rows = self.select(table, columns, eq=eq, limit=1)
        return rows[0] if rows else None

    def insert(self, table, rows):
        rows = [dict(row) for row in rows]
        self.calls.append(("insert", table, rows))
        self._maybe_fail("insert", table)
        self.tables[table].extend(rows)
        return [dict(row) for row in rows]

    def update(self, table, values, *, eq):
        self.calls.append(("update", table, dict(values), eq))
        self._maybe_fail("update", table)
        updated = []
        for row in self.tables[table]:
            if self._matches(row, eq, None):
                row.update(values)
                updated.append(dict(row))
        return updated

    def delete(self, table, *, eq):
        self.calls.append(("delete", table, eq))
        self._maybe_fail("delete", table)
        removed = [row for row in self.tables[table] if self._matches(row, eq, None)]
        self.tables[table] = [row for row in self.tables[table] if not self._matches(row, eq, None)]
        return removed


@pytest.fixture()
def identity():
    return FakeIdentityProvider()


@pytest.fixture()
def store():
    return FakeTableStore()


@pytest.fixture()
def seeded(identity, store):
    """One headquarters admin and one store user, each with a live token."""
    admin_id = identity.add_identity("admin@example.com", "admin-pass")
    store_id = identity.add_identity("STORE1@example.com", "password123")
    store.seed(
        "Profiles",
        {"id": admin_id, "company_code": "admin", "role": "admin", "store_name": None, "group": None},
        {"id": store_id, "company_code": "STORE1", "role": "store", "store_name": "Shibuya", "group": "east"},
    )
    return {
        "admin_id": admin_id,
        "admin_token": identity.issue_token(admin_id),
        "store_id": store_id,
        "store_token": identity.issue_token(store_id),
    }


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def app(identity, store):
    flask_app = create_app(identity=identity, store=store)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        with app.app_context():
            yield client


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "critical: marks tests as critical security tests (P0 priority)"
    )
