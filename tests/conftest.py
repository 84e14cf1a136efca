"""Shared fixtures: real SQLite files and in-memory server stand-ins."""

import json
import sqlite3
from pathlib import Path

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from db_lens.config import Settings
from db_lens.notify import RecordingNotifier

USERS = [
    (1, "alice", "alice@example.com", 31),
    (2, "bob", "bob@example.com", 27),
    (3, "carol", "carol@example.org", 45),
    (4, "dave", None, 19),
    (5, "erin", "erin@example.com", 38),
]


def create_sqlite_db(path: Path) -> Path:
    """Create a small database with users and posts (posts.user_id -> users.id)."""
    conn = sqlite3.connect(path)
    try:
        conn.executescript(
            """
            CREATE TABLE users (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT,
                age INTEGER
            );
            CREATE TABLE posts (
                id INTEGER PRIMARY KEY,
                user_id INTEGER NOT NULL REFERENCES users(id),
                title TEXT NOT NULL DEFAULT 'untitled'
            );
            """
        )
        conn.executemany("INSERT INTO users VALUES (?, ?, ?, ?)", USERS)
        conn.executemany(
            "INSERT INTO posts (user_id, title) VALUES (?, ?)",
            [(1, "hello"), (1, "again"), (3, "notes")],
        )
        conn.commit()
    finally:
        conn.close()
    return path


def memory_handle(schema: str | None = None):
    """In-memory SQLite engine standing in for a server connection handle.

    ``schema`` attaches an extra in-memory database under that name so engines
    that inspect a named schema (PostgresEngine uses ``public``) work too.
    """
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    if schema:

        @event.listens_for(engine, "connect")
        def _attach(dbapi_connection, connection_record):
            dbapi_connection.execute(f"ATTACH DATABASE ':memory:' AS {schema}")

    return engine


def write_config(workspace: Path, entries, name: str = ".vscode/db-lens.json") -> Path:
    """Write a connection list into the workspace."""
    path = workspace / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(entries if isinstance(entries, str) else json.dumps(entries))
    return path


@pytest.fixture
def sqlite_db(tmp_path: Path) -> Path:
    return create_sqlite_db(tmp_path / "app.sqlite")


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def settings(workspace: Path) -> Settings:
    return Settings(workspace_root=str(workspace))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_sqlite_db():
    return create_sqlite_db


@pytest.fixture
def server_handle():
    return memory_handle


@pytest.fixture
def config_writer():
    return write_config
