"""Engine provider: one discovery strategy, its validated connections, and selection.

Lifecycle, driven by the host:

1. ``boot()`` resets the provider (drops cached connections and the selection).
2. ``can_be_used_in_current_workspace()`` resolves descriptors, validates each
   one against a live engine, and caches the ones that pass.
3. ``get_database_engine(option)`` selects a cached engine by id, re-boots it
   and hands it out.

No method raises past this class: failures come back as ``False``/``None``
and, where the user should know, as a message on the notifier.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from db_lens.descriptors import (
    MysqlDescriptor,
    PostgresDescriptor,
    ServerDescriptor,
    SqliteDescriptor,
)
from db_lens.engines import DatabaseEngine, MysqlEngine, PostgresEngine, SqliteEngine
from db_lens.engines.base import DEFAULT_PAGE_SIZE
from db_lens.engines.connector import get_connection_for
from db_lens.errors import ConnectionLookupError, StructuralConfigError
from db_lens.notify import Notifier
from db_lens.resolvers import ConnectionResolver

logger = logging.getLogger(__name__)

Descriptor = SqliteDescriptor | ServerDescriptor


@dataclass(frozen=True)
class EngineOption:
    """Selection request for a cached connection."""

    id: str


@dataclass(frozen=True)
class ValidatedConnection:
    """A descriptor that produced a live, health-checked engine."""

    id: str
    description: str
    engine: DatabaseEngine
    detail: str | None = None


@dataclass(frozen=True)
class ConnectionOption:
    """What a picker shows for a cached connection; selected via EngineOption."""

    id: str
    description: str
    kind: str
    detail: str | None = None


# ---------------------------------------------------------------------------
# Engine factories, one per descriptor variant
# ---------------------------------------------------------------------------


def _build_sqlite(
    descriptor: SqliteDescriptor, page_size: int, connect_timeout: int
) -> SqliteEngine:
    return SqliteEngine(descriptor.path, page_size=page_size)


def _build_mysql(
    descriptor: MysqlDescriptor, page_size: int, connect_timeout: int
) -> MysqlEngine | None:
    connection = get_connection_for(
        descriptor.type,
        descriptor.host,
        descriptor.effective_port,
        descriptor.username,
        descriptor.password,
        descriptor.database,
        connect_timeout=connect_timeout,
    )
    if connection is None:
        return None
    return MysqlEngine(connection, kind=descriptor.type, page_size=page_size)


def _build_postgres(
    descriptor: PostgresDescriptor, page_size: int, connect_timeout: int
) -> PostgresEngine | None:
    connection = get_connection_for(
        "postgres",
        descriptor.host,
        descriptor.effective_port,
        descriptor.username,
        descriptor.password,
        descriptor.database,
        connect_timeout=connect_timeout,
    )
    if connection is None:
        return None
    return PostgresEngine(connection, page_size=page_size)


_ENGINE_FACTORIES: dict[type, Callable[..., DatabaseEngine | None]] = {
    SqliteDescriptor: _build_sqlite,
    MysqlDescriptor: _build_mysql,
    PostgresDescriptor: _build_postgres,
}


def build_engine(
    descriptor: Descriptor,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    connect_timeout: int = 5,
) -> DatabaseEngine | None:
    """Construct (without connecting) the engine for a descriptor.

    Returns:
        The engine, or None if no connection handle could be prepared
    """
    factory = _ENGINE_FACTORIES.get(type(descriptor))
    if factory is None:
        raise TypeError(f"No engine for descriptor type: {type(descriptor).__name__}")
    return factory(descriptor, page_size, connect_timeout)


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------


class EngineProvider:
    """Binds one resolver to a cache of validated connections."""

    def __init__(
        self,
        *,
        id: str,
        name: str,
        description: str,
        resolver: ConnectionResolver,
        notifier: Notifier,
        source_label: str = "config file",
        page_size: int = DEFAULT_PAGE_SIZE,
        connect_timeout: int = 5,
    ) -> None:
        self.id = id
        self.name = name
        self.description = description
        self.resolver = resolver
        self.notifier = notifier
        self.source_label = source_label
        self.page_size = page_size
        self.connect_timeout = connect_timeout
        self._cache: list[ValidatedConnection] | None = None
        self._engine: DatabaseEngine | None = None

    def __repr__(self) -> str:
        return f"<EngineProvider id={self.id!r}>"

    @property
    def cache(self) -> tuple[ValidatedConnection, ...] | None:
        """Validated connections, or None before (or after a failed) resolution."""
        if self._cache is None:
            return None
        return tuple(self._cache)

    @property
    def engine(self) -> DatabaseEngine | None:
        """The currently selected engine."""
        return self._engine

    @property
    def options(self) -> tuple[ConnectionOption, ...]:
        return tuple(
            ConnectionOption(
                id=connection.id,
                description=connection.description,
                kind=connection.engine.kind,
                detail=connection.detail,
            )
            for connection in self._cache or ()
        )

    # -- reset ---------------------------------------------------------------

    async def boot(self) -> None:
        """Forget every cached connection and the current selection."""
        await self._reset()
        logger.debug("%r reset", self)

    async def _reset(self) -> None:
        cache, self._cache, self._engine = self._cache, None, None
        for connection in cache or ():
            try:
                await connection.engine.close()
            except Exception as e:
                logger.debug("Closing %s failed: %s", connection.id, e)

    # -- resolution ----------------------------------------------------------

    async def can_be_used_in_current_workspace(self) -> bool:
        """Resolve and validate connections; True iff at least one is live."""
        await self._reset()

        try:
            descriptors = await self.resolver.resolve()
            if not descriptors:
                return False
            self._check_structure(descriptors)
        except StructuralConfigError as e:
            logger.warning("%r: %s", self, e)
            await self.notifier.error(str(e))
            return False
        except Exception as e:
            logger.exception("%r: resolving connections failed", self)
            await self.notifier.error(f"Could not read the {self.source_label}: {e}")
            return False

        cache: list[ValidatedConnection] = []
        for descriptor in descriptors:
            connection = await self._validate(descriptor)
            if connection is not None:
                cache.append(connection)

        self._cache = cache
        return len(cache) > 0

    def _check_structure(self, descriptors: Sequence[Descriptor]) -> None:
        """Reject the whole batch before any connection is opened.

        Raises:
            StructuralConfigError: On a server entry without a name or a repeated id
        """
        seen: set[str] = set()
        for descriptor in descriptors:
            if isinstance(descriptor, ServerDescriptor) and not descriptor.identity:
                raise StructuralConfigError(
                    f"The {descriptor.label} {self.source_label} entry does not have a name."
                )
            identity = descriptor.identity
            if not identity:
                continue
            if identity in seen:
                raise StructuralConfigError(
                    f"The {self.source_label} lists the {descriptor.label} connection "
                    f"{identity} more than once."
                )
            seen.add(identity)

    async def _validate(self, descriptor: Descriptor) -> ValidatedConnection | None:
        engine = build_engine(
            descriptor, page_size=self.page_size, connect_timeout=self.connect_timeout
        )
        if engine is None:
            await self.notifier.error(self._invalid_message(descriptor))
            return None

        try:
            await engine.boot()
            okay = await engine.is_okay()
        except Exception as e:
            logger.warning("%s connection %s failed: %s", descriptor.label, descriptor.identity, e)
            okay = False

        if not okay:
            await engine.close()
            await self.notifier.error(self._invalid_message(descriptor))
            return None

        return ValidatedConnection(
            id=descriptor.identity or "",
            description=descriptor.description,
            detail=descriptor.detail,
            engine=engine,
        )

    def _invalid_message(self, descriptor: Descriptor) -> str:
        if isinstance(descriptor, SqliteDescriptor):
            return (
                f"The SQLite database {descriptor.path} specified in your "
                f"{self.source_label} is not valid."
            )
        return (
            f"The {descriptor.label} connection {descriptor.name} specified in your "
            f"{self.source_label} is not valid."
        )

    # -- selection -----------------------------------------------------------

    async def get_database_engine(
        self, option: EngineOption | None = None
    ) -> DatabaseEngine | None:
        """Select (by id) or keep the current engine, re-boot it and return it."""
        try:
            if option is not None:
                self._engine = self._lookup(option.id).engine
            if self._engine is None:
                raise ConnectionLookupError("No database connection has been selected.")
        except ConnectionLookupError as e:
            await self.notifier.error(str(e))
            return None

        try:
            await self._engine.boot()
        except Exception as e:
            logger.warning("%r: refreshing %r failed: %s", self, self._engine, e)
            await self.notifier.error(f"Could not reconnect to the selected database: {e}")
            return None
        return self._engine

    def _lookup(self, option_id: str) -> ValidatedConnection:
        for connection in self._cache or ():
            if connection.id == option_id:
                return connection
        raise ConnectionLookupError(f"Could not find option with id {option_id}")
