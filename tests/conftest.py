import copy
import itertools

import pytest
from fastapi.testclient import TestClient

from md_dashboard import auth
from md_dashboard.config import Settings, get_settings
from md_dashboard.main import app
from md_dashboard.models import User
from md_dashboard.store.client import StoreError
from md_dashboard.store.db import get_store

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass"


class FakeStore:
    """In-memory stand-in for AirtableClient.

    Ignores filter formulas on purpose so tests see whether the routes
    themselves keep foreign rows out of non-admin responses.
    """

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.created = []
        self.updated = []
        self.fail = False
        self._ids = itertools.count(1)

    def add(self, table, fields, record_id=None):
        record = {"id": record_id or f"rec{next(self._ids)}", "fields": dict(fields)}
        self.tables.setdefault(table, []).append(record)
        return record

    def _check(self):
        if self.fail:
            raise StoreError("boom")

    def list_records(self, table, filter_by_formula=None, max_records=None, view=None, sort=None):
        self.calls.append(("list", table, filter_by_formula, sort))
        self._check()
        records = copy.deepcopy(self.tables.get(table, []))
        return records[:max_records] if max_records else records

    def get_record(self, table, record_id):
        self.calls.append(("get", table, record_id))
        self._check()
        for r in self.tables.get(table, []):
            if r["id"] == record_id:
                return copy.deepcopy(r)
        raise StoreError("NOT_FOUND", status_code=404)

    def create_record(self, table, fields):
        self._check()
        record = self.add(table, fields)
        self.created.append((table, copy.deepcopy(fields)))
        return copy.deepcopy(record)

    def update_record(self, table, record_id, fields):
        self._check()
        for r in self.tables.get(table, []):
            if r["id"] == record_id:
                r["fields"].update(fields)
                self.updated.append((table, record_id, dict(fields)))
                return copy.deepcopy(r)
        raise StoreError("NOT_FOUND", status_code=404)


@pytest.fixture
def settings():
    return Settings(jwt_secret="test-secret", admin_email=ADMIN_EMAIL, admin_password=ADMIN_PASSWORD)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(settings, store):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_headers(settings):
    def _make(user: User):
        return {"Authorization": "Bearer " + auth.create_access_token(user, settings)}
    return _make


@pytest.fixture
def md_user():
    return User(id="recMD1", email="kim@example.com", name="김MD", role="md")


@pytest.fixture
def md_headers(make_headers, md_user):
    return make_headers(md_user)


@pytest.fixture
def admin_user():
    return User(id="recADM", email="boss@example.com", name="박관리", role="admin")


@pytest.fixture
def admin_headers(make_headers, admin_user):
    return make_headers(admin_user)


@pytest.fixture
def demo_headers(make_headers):
    return make_headers(auth.DEMO_USER)
