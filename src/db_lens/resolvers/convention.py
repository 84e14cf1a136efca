"""Zero-config resolver: find the database a project already declares.

Conventions, first match wins:

1. ``DATABASE_URL`` (any SQLAlchemy-style URL for sqlite, mysql, mariadb, postgres)
2. ``DB_CONNECTION`` with ``DB_HOST``/``DB_PORT``/``DB_USERNAME``/``DB_PASSWORD``/``DB_DATABASE``
3. an existing ``database/database.sqlite`` file

Variables come from the project's ``.env`` file, overridden by the process
environment.
"""

import asyncio
import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path

from dotenv import dotenv_values
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from db_lens.config import Settings
from db_lens.descriptors import ServerDescriptor, SqliteDescriptor, parse_descriptor
from db_lens.errors import StructuralConfigError

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_PATH = Path("database") / "database.sqlite"

_SERVER_TYPES = {
    "mysql": "mysql",
    "mariadb": "mariadb",
    "pgsql": "postgres",
    "postgres": "postgres",
    "postgresql": "postgres",
}

Descriptor = SqliteDescriptor | ServerDescriptor


def _anchor(path: str, root: Path) -> str:
    candidate = Path(path).expanduser()
    return str(candidate if candidate.is_absolute() else root / candidate)


def _server(kind: str, host: str | None, port, username, password, database) -> Descriptor | None:
    host = host or "127.0.0.1"
    try:
        return parse_descriptor(
            {
                "type": kind,
                "name": f"{database or kind}@{host}",
                "host": host,
                "port": port,
                "username": username or "",
                "password": password or "",
                "database": database or "",
            }
        )
    except StructuralConfigError as e:
        logger.warning("Ignoring %s settings from the environment: %s", kind, e)
        return None


def _from_database_url(env: Mapping[str, str], root: Path) -> Descriptor | None:
    raw = env.get("DATABASE_URL")
    if not raw:
        return None
    try:
        url = make_url(raw)
    except ArgumentError as e:
        logger.warning("Ignoring unparsable DATABASE_URL: %s", e)
        return None

    backend = url.get_backend_name()
    if backend == "sqlite":
        if not url.database or url.database == ":memory:":
            return None
        return SqliteDescriptor(path=_anchor(url.database, root))

    kind = _SERVER_TYPES.get(backend)
    if kind is None:
        logger.debug("DATABASE_URL backend %s is not supported", backend)
        return None
    return _server(kind, url.host, url.port, url.username, url.password, url.database)


def _from_db_connection(env: Mapping[str, str], root: Path) -> Descriptor | None:
    connection = (env.get("DB_CONNECTION") or "").strip().lower()
    if not connection:
        return None
    if connection == "sqlite":
        path = env.get("DB_DATABASE") or str(DEFAULT_SQLITE_PATH)
        return SqliteDescriptor(path=_anchor(path, root))

    kind = _SERVER_TYPES.get(connection)
    if kind is None:
        logger.debug("DB_CONNECTION %s is not supported", connection)
        return None
    return _server(
        kind,
        env.get("DB_HOST"),
        env.get("DB_PORT"),
        env.get("DB_USERNAME"),
        env.get("DB_PASSWORD"),
        env.get("DB_DATABASE"),
    )


def _from_default_sqlite(env: Mapping[str, str], root: Path) -> Descriptor | None:
    path = root / DEFAULT_SQLITE_PATH
    if path.is_file():
        return SqliteDescriptor(path=str(path))
    return None


CONVENTIONS: tuple[Callable[[Mapping[str, str], Path], Descriptor | None], ...] = (
    _from_database_url,
    _from_db_connection,
    _from_default_sqlite,
)


class ConventionResolver:
    """Resolve at most one descriptor from project conventions."""

    def __init__(self, settings: Settings, environ: Mapping[str, str] | None = None) -> None:
        self.settings = settings
        self.environ = os.environ if environ is None else environ

    async def resolve(self) -> list[Descriptor] | None:
        return await asyncio.to_thread(self._resolve_sync)

    def _resolve_sync(self) -> list[Descriptor] | None:
        root = self.settings.get_workspace_root()
        env = self._load_env(root)
        for convention in CONVENTIONS:
            descriptor = convention(env, root)
            if descriptor is not None:
                logger.debug("Convention %s matched %s", convention.__name__, descriptor.identity)
                return [descriptor]
        return None

    def _load_env(self, root: Path) -> dict[str, str]:
        env: dict[str, str] = {}
        env_file = root / ".env"
        if env_file.is_file():
            try:
                values = dotenv_values(env_file)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Ignoring unreadable %s: %s", env_file, e)
                values = {}
            env.update({k: v for k, v in values.items() if v is not None})
        env.update(self.environ)
        return env
