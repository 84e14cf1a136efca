"""Embedded-file engine backed by SQLite."""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import URL, create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from db_lens.engines.base import DEFAULT_PAGE_SIZE, SQLAlchemyEngine
from db_lens.errors import EngineConnectionError

logger = logging.getLogger(__name__)


def sqlite_url(path: str | Path) -> URL:
    """URL that opens an existing file read-write and never creates one."""
    uri = Path(path).resolve().as_uri()
    return URL.create("sqlite", database=uri, query={"mode": "rw", "uri": "true"})


class SqliteEngine(SQLAlchemyEngine):
    """Engine for a SQLite database file.

    Construction only records the path; ``boot()`` opens (or re-opens) the
    file.
    """

    kind = "sqlite"

    def __init__(self, path: str, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        super().__init__(None, page_size=page_size)
        self.path = path

    def __repr__(self) -> str:
        return f"<SqliteEngine path={self.path!r}>"

    def _boot_sync(self) -> None:
        if not self.path or not Path(self.path).is_file():
            raise EngineConnectionError(f"SQLite database file not found: {self.path}")

        if self.connection is not None:
            self.connection.dispose()
            self.connection = None

        try:
            engine = create_engine(
                sqlite_url(self.path),
                connect_args={"check_same_thread": False},
            )
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise EngineConnectionError(f"Failed to open SQLite database {self.path}: {e}") from e
        self.connection = engine
        logger.debug("Opened SQLite database %s", self.path)

    def _health_check(self) -> None:
        if not Path(self.path).is_file():
            raise EngineConnectionError(f"SQLite database file not found: {self.path}")
        # Reading the schema table rejects files without a valid SQLite header.
        with self._require_connection().connect() as conn:
            conn.execute(text("SELECT name FROM sqlite_master LIMIT 1")).fetchall()
