"""Engine contract and the shared SQLAlchemy implementation.

Every concrete engine speaks SQL through an SQLAlchemy ``Engine``; what
differs per storage technology is how that handle is obtained and which
schema is inspected. Blocking driver calls run in a worker thread so the
contract stays awaitable.
"""

from __future__ import annotations

import asyncio
import logging
import operator
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar, runtime_checkable

from sqlalchemy import (
    Engine,
    MetaData,
    Table,
    and_,
    delete,
    func,
    insert,
    inspect,
    select,
    text,
    update,
)
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from db_lens.errors import EngineConnectionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class Column:
    """Column metadata for a table."""

    name: str
    type: str
    nullable: bool = True
    primary_key: bool = False
    default: str | None = None
    foreign_key: str | None = None


@dataclass(frozen=True)
class Condition:
    """A single ``column <operator> value`` row filter."""

    column: str
    operator: str = "="
    value: Any = None


@dataclass(frozen=True)
class RowPage:
    """One page of table rows."""

    columns: tuple[str, ...]
    rows: list[dict[str, Any]]
    page: int
    per_page: int
    total: int

    @property
    def page_count(self) -> int:
        if self.total == 0:
            return 1
        return (self.total + self.per_page - 1) // self.per_page


_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "like": lambda column, value: column.like(value),
}


@runtime_checkable
class DatabaseEngine(Protocol):
    """Protocol every storage engine implements."""

    kind: str

    async def boot(self) -> None:
        """Establish or refresh the live session. Raises EngineConnectionError."""
        ...

    async def is_okay(self) -> bool:
        """Cheap round-trip health check; never raises."""
        ...

    async def close(self) -> None:
        """Release the live session."""
        ...

    async def get_tables(self) -> list[str]:
        """List table names."""
        ...

    async def get_columns(self, table: str) -> list[Column]:
        """Describe the columns of a table."""
        ...

    async def get_total_rows(self, table: str, conditions: Sequence[Condition] = ()) -> int:
        """Count rows matching the conditions."""
        ...

    async def get_rows(
        self,
        table: str,
        page: int = 1,
        per_page: int | None = None,
        conditions: Sequence[Condition] = (),
    ) -> RowPage:
        """Fetch one page of rows."""
        ...

    async def insert_record(self, table: str, values: Mapping[str, Any]) -> int:
        """Insert a row; returns the affected row count."""
        ...

    async def update_cell(
        self, table: str, column: str, value: Any, where: Mapping[str, Any]
    ) -> int:
        """Set one column on the rows matching ``where``."""
        ...

    async def delete_records(self, table: str, where: Sequence[Mapping[str, Any]]) -> int:
        """Delete every row matching one of the ``where`` mappings."""
        ...


class SQLAlchemyEngine:
    """DatabaseEngine backed by an SQLAlchemy ``Engine``.

    Subclasses decide how ``connection`` is obtained (see ``boot``) and may
    set ``schema`` for engines with a default namespace.
    """

    kind: str = "sql"
    schema: str | None = None

    def __init__(
        self, connection: Engine | None = None, *, page_size: int = DEFAULT_PAGE_SIZE
    ) -> None:
        self.connection = connection
        self.page_size = page_size
        self._verified = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind!r}>"

    # -- lifecycle -----------------------------------------------------------

    async def boot(self) -> None:
        await asyncio.to_thread(self._boot_sync)

    def _boot_sync(self) -> None:
        connection = self._require_connection()
        try:
            with connection.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise EngineConnectionError(f"Failed to connect to {self.kind} database: {e}") from e

    async def is_okay(self) -> bool:
        try:
            await asyncio.to_thread(self._health_check)
        except Exception as e:
            logger.debug("%r health check failed: %s", self, e)
            return False
        self._verified = True
        return True

    def _health_check(self) -> None:
        connection = self._require_connection()
        inspect(connection).get_table_names(schema=self.schema)

    async def close(self) -> None:
        if self.connection is not None:
            await asyncio.to_thread(self.connection.dispose)

    def _require_connection(self) -> Engine:
        if self.connection is None:
            raise EngineConnectionError(f"No {self.kind} connection is available")
        return self.connection

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        if not self._verified:
            raise EngineConnectionError(
                f"{self.kind} engine has not passed a health check; call is_okay() first"
            )
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as e:
            raise EngineConnectionError(f"{self.kind} query failed: {e}") from e

    # -- schema --------------------------------------------------------------

    async def get_tables(self) -> list[str]:
        return await self._run(self._get_tables_sync)

    def _get_tables_sync(self) -> list[str]:
        return sorted(inspect(self._require_connection()).get_table_names(schema=self.schema))

    async def get_columns(self, table: str) -> list[Column]:
        return await self._run(self._get_columns_sync, table)

    def _get_columns_sync(self, table: str) -> list[Column]:
        inspector = inspect(self._require_connection())
        try:
            raw_columns = inspector.get_columns(table, schema=self.schema)
        except NoSuchTableError as e:
            raise ValueError(f"Unknown table: {table}") from e
        primary_keys = set(
            inspector.get_pk_constraint(table, schema=self.schema).get("constrained_columns") or []
        )
        foreign_keys: dict[str, str] = {}
        for fk in inspector.get_foreign_keys(table, schema=self.schema):
            for local, remote in zip(fk["constrained_columns"], fk["referred_columns"]):
                foreign_keys[local] = f"{fk['referred_table']}.{remote}"

        return [
            Column(
                name=col["name"],
                type=str(col["type"]),
                nullable=bool(col.get("nullable", True)),
                primary_key=col["name"] in primary_keys,
                default=str(col["default"]) if col.get("default") is not None else None,
                foreign_key=foreign_keys.get(col["name"]),
            )
            for col in raw_columns
        ]

    def _reflect(self, table: str) -> Table:
        try:
            return Table(
                table, MetaData(), autoload_with=self._require_connection(), schema=self.schema
            )
        except NoSuchTableError as e:
            raise ValueError(f"Unknown table: {table}") from e

    # -- rows ----------------------------------------------------------------

    async def get_total_rows(self, table: str, conditions: Sequence[Condition] = ()) -> int:
        return await self._run(self._get_total_rows_sync, table, tuple(conditions))

    def _get_total_rows_sync(self, table: str, conditions: tuple[Condition, ...]) -> int:
        t = self._reflect(table)
        stmt = select(func.count()).select_from(t).where(*_filters(t, conditions))
        with self._require_connection().connect() as conn:
            return int(conn.execute(stmt).scalar_one())

    async def get_rows(
        self,
        table: str,
        page: int = 1,
        per_page: int | None = None,
        conditions: Sequence[Condition] = (),
    ) -> RowPage:
        per_page = per_page or self.page_size
        if page < 1 or per_page < 1:
            raise ValueError("page and per_page must be positive")
        return await self._run(self._get_rows_sync, table, page, per_page, tuple(conditions))

    def _get_rows_sync(
        self, table: str, page: int, per_page: int, conditions: tuple[Condition, ...]
    ) -> RowPage:
        t = self._reflect(table)
        filters = _filters(t, conditions)
        # Stable pages need a deterministic order; fall back to column order.
        order_by = list(t.primary_key.columns) or list(t.columns)[:1]
        stmt = (
            select(t)
            .where(*filters)
            .order_by(*order_by)
            .limit(per_page)
            .offset((page - 1) * per_page)
        )
        count_stmt = select(func.count()).select_from(t).where(*filters)
        with self._require_connection().connect() as conn:
            total = int(conn.execute(count_stmt).scalar_one())
            rows = [dict(row._mapping) for row in conn.execute(stmt)]
        return RowPage(
            columns=tuple(c.name for c in t.columns),
            rows=rows,
            page=page,
            per_page=per_page,
            total=total,
        )

    # -- mutations -----------------------------------------------------------

    async def insert_record(self, table: str, values: Mapping[str, Any]) -> int:
        return await self._run(self._insert_sync, table, dict(values))

    def _insert_sync(self, table: str, values: dict[str, Any]) -> int:
        t = self._reflect(table)
        _check_columns(t, values)
        with self._require_connection().begin() as conn:
            return conn.execute(insert(t).values(**values)).rowcount

    async def update_cell(
        self, table: str, column: str, value: Any, where: Mapping[str, Any]
    ) -> int:
        return await self._run(self._update_sync, table, column, value, dict(where))

    def _update_sync(self, table: str, column: str, value: Any, where: dict[str, Any]) -> int:
        t = self._reflect(table)
        _check_columns(t, {column: value})
        stmt = update(t).where(_match(t, where)).values({column: value})
        with self._require_connection().begin() as conn:
            return conn.execute(stmt).rowcount

    async def delete_records(self, table: str, where: Sequence[Mapping[str, Any]]) -> int:
        return await self._run(self._delete_sync, table, [dict(w) for w in where])

    def _delete_sync(self, table: str, where: list[dict[str, Any]]) -> int:
        t = self._reflect(table)
        clauses = [_match(t, w) for w in where]
        deleted = 0
        with self._require_connection().begin() as conn:
            for clause in clauses:
                deleted += conn.execute(delete(t).where(clause)).rowcount
        return deleted


def _check_columns(t: Table, values: Mapping[str, Any]) -> None:
    unknown = [name for name in values if name not in t.c]
    if unknown:
        raise ValueError(f"Unknown column(s) on {t.name}: {', '.join(unknown)}")


def _match(t: Table, where: Mapping[str, Any]) -> Any:
    """Equality match on every key of ``where``; refuses to match everything."""
    if not where:
        raise ValueError("A row selector is required for updates and deletes")
    _check_columns(t, where)
    return and_(*(t.c[name] == value for name, value in where.items()))


def _filters(t: Table, conditions: Sequence[Condition]) -> list[Any]:
    clauses = []
    for condition in conditions:
        if condition.column not in t.c:
            raise ValueError(f"Unknown column on {t.name}: {condition.column}")
        op = _OPERATORS.get(condition.operator.lower())
        if op is None:
            raise ValueError(f"Unsupported operator: {condition.operator}")
        clauses.append(op(t.c[condition.column], condition.value))
    return clauses
