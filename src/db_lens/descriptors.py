"""Connection descriptors: unvalidated descriptions of candidate databases.

A descriptor is what a resolver produces and what a provider turns into a
live engine. Shapes accepted in the connection list::

    {"type": "sqlite", "path": "database/app.sqlite"}
    {"type": "mysql" | "mariadb", "name": ..., "host": ..., "port": ...,
     "username": ..., "password": ..., "database": ...}
    {"type": "postgres", "name": ..., "host": ..., "port": ...,
     "username": ..., "password": ..., "database": ...}

Server ``name`` is optional at parse time; the provider reports it missing so
the user sees which kind of entry is broken.
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from db_lens.errors import StructuralConfigError

logger = logging.getLogger(__name__)


def brief(path: str) -> str:
    """Short label for a file path (its final component)."""
    return PurePath(path).name or path


class SqliteDescriptor(BaseModel):
    """Embedded-file database; its identity is the path."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: Literal["sqlite"] = "sqlite"
    path: str = ""

    @property
    def label(self) -> str:
        return "SQLite"

    @property
    def identity(self) -> str:
        return self.path

    @property
    def description(self) -> str:
        return brief(self.path)

    @property
    def detail(self) -> str:
        return self.path


class ServerDescriptor(BaseModel):
    """Fields shared by the client-server engines; identity is ``name``."""

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    DEFAULT_PORT: ClassVar[int] = 0
    LABELS: ClassVar[dict[str, str]] = {}

    type: str
    name: str | None = None
    host: str = "127.0.0.1"
    port: int | None = None
    username: str = ""
    password: str = Field(default="", repr=False)
    database: str = ""

    @field_validator("port", mode="before")
    @classmethod
    def _blank_port(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def label(self) -> str:
        return self.LABELS.get(self.type, self.type)

    @property
    def identity(self) -> str | None:
        return self.name or None

    @property
    def effective_port(self) -> int:
        return self.port if self.port is not None else self.DEFAULT_PORT

    @property
    def description(self) -> str:
        return self.name or ""

    @property
    def detail(self) -> str:
        user = f"{self.username}@" if self.username else ""
        return f"{user}{self.host}:{self.effective_port}/{self.database}"


class MysqlDescriptor(ServerDescriptor):
    """MySQL or MariaDB server."""

    DEFAULT_PORT: ClassVar[int] = 3306
    LABELS: ClassVar[dict[str, str]] = {"mysql": "MySQL", "mariadb": "MariaDB"}

    type: Literal["mysql", "mariadb"] = "mysql"


class PostgresDescriptor(ServerDescriptor):
    """PostgreSQL server."""

    DEFAULT_PORT: ClassVar[int] = 5432
    LABELS: ClassVar[dict[str, str]] = {"postgres": "Postgres"}

    type: Literal["postgres"] = "postgres"


ConnectionDescriptor = Annotated[
    Union[SqliteDescriptor, MysqlDescriptor, PostgresDescriptor],
    Field(discriminator="type"),
]

DESCRIPTOR_TYPES = ("sqlite", "mysql", "mariadb", "postgres")

_ADAPTER: TypeAdapter[Any] = TypeAdapter(ConnectionDescriptor)


def parse_descriptor(entry: dict[str, Any]) -> SqliteDescriptor | ServerDescriptor:
    """Validate one mapping into its descriptor variant.

    Raises:
        StructuralConfigError: If a field has the wrong shape (e.g. a non-numeric port)
    """
    try:
        return _ADAPTER.validate_python(entry)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'entry'}: {err['msg']}"
            for err in e.errors()
        )
        raise StructuralConfigError(
            f"The {entry.get('type')} config file entry is invalid ({problems})."
        ) from e


def parse_descriptors(raw: Any) -> list[SqliteDescriptor | ServerDescriptor] | None:
    """Parse a decoded connection list.

    Args:
        raw: Whatever the configuration file decoded to

    Returns:
        The descriptors in list order, or None when ``raw`` is not a list.
        Entries that are not mappings or have an unknown ``type`` are skipped.

    Raises:
        StructuralConfigError: If an entry of a known type is malformed
    """
    if not isinstance(raw, list):
        return None

    descriptors: list[SqliteDescriptor | ServerDescriptor] = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            logger.warning("Skipping config entry #%d: not an object", index + 1)
            continue
        entry_type = entry.get("type")
        if entry_type not in DESCRIPTOR_TYPES:
            logger.warning("Skipping config entry #%d: unknown type %r", index + 1, entry_type)
            continue
        descriptors.append(parse_descriptor(entry))
    return descriptors
