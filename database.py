"""
SQLite database layer for EduGroup.

Uses raw sqlite3 with WAL mode and parameterized queries. The topic catalog is
seeded on first initialization; a schema_version row records that it ran.
"""

from __future__ import annotations

import fcntl
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

import click
from flask import current_app, g
from flask.cli import with_appcontext

from models import initial_options

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = str(Path(__file__).parent / "edugroup.db")
SCHEMA_VERSION = 1


SCHEMA = """
-- Migration tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL,
    applied_at TEXT NOT NULL
);

-- Users
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'STUDENT',
    preferences_locked INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT ''
);

-- Topic catalog (ids 1-12, seeded once)
CREATE TABLE IF NOT EXISTS options (
    id INTEGER PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT ''
);

-- Project groups, one per (batch, topic) cell
CREATE TABLE IF NOT EXISTS project_groups (
    id TEXT PRIMARY KEY,
    batch_number INTEGER NOT NULL,
    option_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    member_ids TEXT NOT NULL DEFAULT '[]',
    is_locked INTEGER NOT NULL DEFAULT 0,
    UNIQUE(batch_number, option_id)
);

-- Section uploads, one per (student, section)
CREATE TABLE IF NOT EXISTS uploads (
    student_id TEXT NOT NULL,
    section_id INTEGER NOT NULL,
    file_name TEXT NOT NULL DEFAULT '',
    file_url TEXT NOT NULL DEFAULT '',
    uploaded_at TEXT NOT NULL DEFAULT '',
    remark TEXT,
    PRIMARY KEY (student_id, section_id)
);

-- Group chat
CREATE TABLE IF NOT EXISTS chat_messages (
    id TEXT PRIMARY KEY,
    group_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    user_name TEXT NOT NULL,
    message TEXT NOT NULL,
    timestamp INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_chat_group_ts ON chat_messages(group_id, timestamp);
"""


def connect(db_url: str) -> sqlite3.Connection:
    """Open a configured SQLite connection."""
    conn = sqlite3.connect(db_url, timeout=10)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create tables and seed the topic catalog if this is a fresh database."""
    conn.executescript(SCHEMA)
    row = conn.execute(
        "SELECT version FROM schema_version WHERE version = ?", (SCHEMA_VERSION,)
    ).fetchone()
    if row:
        return
    conn.executemany(
        "INSERT OR IGNORE INTO options (id, title, description) VALUES (?, ?, ?)",
        [(o.id, o.title, o.description) for o in initial_options()],
    )
    conn.execute(
        "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
        (SCHEMA_VERSION, datetime.now().isoformat()),
    )
    conn.commit()
    logger.info("Database initialized (schema v%d, topics seeded)", SCHEMA_VERSION)


def get_db() -> sqlite3.Connection:
    """Return a DB connection from Flask g, creating if needed."""
    if "db" not in g:
        g.db = connect(current_app.config.get("DATABASE", DEFAULT_DATABASE))
    return g.db


def close_db(e=None) -> None:
    """Teardown handler — close DB connection."""
    db = g.pop("db", None)
    if db is not None:
        db.close()


def init_db() -> None:
    """Create the schema, holding a file lock so concurrent workers don't race.

    The lock is only taken for file-backed databases.
    """
    db_url = current_app.config.get("DATABASE", DEFAULT_DATABASE)
    lock_file = None
    if db_url != ":memory:":
        lock_path = Path(db_url).with_suffix(".init.lock")
        try:
            lock_file = open(lock_path, "w")
            fcntl.flock(lock_file, fcntl.LOCK_EX)
        except OSError:
            lock_file = None

    try:
        init_schema(get_db())
    finally:
        if lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_UN)
            lock_file.close()


@click.command("init-db")
@with_appcontext
def init_db_command() -> None:
    """Create tables and seed the topic catalog."""
    init_db()
    click.echo("Initialized the database.")


def init_app(app) -> None:
    """Register teardown, the init-db command, and auto-init on first request."""
    app.teardown_appcontext(close_db)
    app.cli.add_command(init_db_command)

    if app.config.get("STORE_BACKEND", "sqlite") != "sqlite":
        return

    @app.before_request
    def _ensure_db():
        if not getattr(app, "_db_initialized", False):
            init_db()
            app._db_initialized = True
