"""
Test fixtures for EduGroup.

Provides app, client, student_client and admin_client fixtures backed by a
file-based SQLite database, plus a ``store`` fixture that runs store-level
tests against both the in-memory and the SQLite backend.
"""

from __future__ import annotations

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from werkzeug.security import generate_password_hash

STUDENT_PASSWORD = "Studentpass1"
ADMIN_PASSWORD = "Adminpass1"

# Hashing is slow; store-level tests share one precomputed hash.
FAKE_HASH = generate_password_hash("Unused1pass")


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """A fresh record store with the topic catalog seeded."""
    if request.param == "memory":
        from record_store import MemoryRecordStore
        yield MemoryRecordStore()
    else:
        from database import connect, init_schema
        from db_stores import SQLiteRecordStore
        conn = connect(str(tmp_path / "store.db"))
        init_schema(conn)
        yield SQLiteRecordStore(conn)
        conn.close()


@pytest.fixture(params=["memory", "sqlite"])
def open_store(request, tmp_path):
    """Context-manager factory for stores shared across threads.

    The memory backend hands every caller the same store. The SQLite backend
    opens a new connection to one database file per call, so each thread
    must open (and close) its own.
    """
    from contextlib import contextmanager

    if request.param == "memory":
        from record_store import MemoryRecordStore
        shared = MemoryRecordStore()

        @contextmanager
        def _open():
            yield shared
    else:
        from database import connect, init_schema
        from db_stores import SQLiteRecordStore
        path = str(tmp_path / "shared.db")
        setup = connect(path)
        init_schema(setup)
        setup.close()

        @contextmanager
        def _open():
            conn = connect(path)
            try:
                yield SQLiteRecordStore(conn)
            finally:
                conn.close()

    return _open


@pytest.fixture
def make_user():
    """Factory adding a user straight to a store, bypassing registration rules."""
    from models import Role, User

    counter = {"n": 0}

    def _make(store, name: str | None = None, role: str = Role.STUDENT, **kwargs):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"Student {n}",
            email=kwargs.pop("email", f"user{n}@test.edu"),
            password_hash=FAKE_HASH,
            role=role,
            **kwargs,
        )
        store.add_user(user)
        return user

    return _make


@pytest.fixture
def app(tmp_path):
    """Create app with file-based SQLite for testing."""
    from app import create_app

    db_file = str(tmp_path / "test.db")
    app = create_app({
        "TESTING": True,
        "DATABASE": db_file,
        "STORE_BACKEND": "sqlite",
        "SECRET_KEY": "test-secret-key",
        "LOG_LEVEL": "WARNING",
    })

    with app.app_context():
        from database import init_db
        from auth import register_user
        from helpers import get_store
        from models import Role

        init_db()
        store = get_store()
        register_user(store, "Test Student", "student@test.edu", STUDENT_PASSWORD)
        register_user(store, "Second Student", "second@test.edu", STUDENT_PASSWORD)
        register_user(store, "Test Admin", "admin@seacet.edu", ADMIN_PASSWORD, role=Role.ADMIN)

    yield app


@pytest.fixture
def client(app):
    """Unauthenticated test client."""
    return app.test_client()


def _login(app, email: str, password: str):
    client = app.test_client()
    resp = client.post("/api/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return client


@pytest.fixture
def student_client(app):
    """Authenticated client for student@test.edu."""
    return _login(app, "student@test.edu", STUDENT_PASSWORD)


@pytest.fixture
def second_client(app):
    """Authenticated client for second@test.edu."""
    return _login(app, "second@test.edu", STUDENT_PASSWORD)


@pytest.fixture
def admin_client(app):
    """Authenticated client for the instructor account."""
    return _login(app, "admin@seacet.edu", ADMIN_PASSWORD)


@pytest.fixture
def user_ids(app):
    """Map of seeded email -> user id."""
    with app.app_context():
        from helpers import get_store
        return {u.email: u.id for u in get_store().list_users()}
