"""MySQL / MariaDB engine."""

from sqlalchemy import Engine

from db_lens.engines.base import DEFAULT_PAGE_SIZE, SQLAlchemyEngine


class MysqlEngine(SQLAlchemyEngine):
    """Engine for a MySQL or MariaDB server.

    The database is part of the connection URL, so no schema is set.
    """

    def __init__(
        self,
        connection: Engine | None,
        *,
        kind: str = "mysql",
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if kind not in ("mysql", "mariadb"):
            raise ValueError(f"MysqlEngine does not support kind {kind!r}")
        super().__init__(connection, page_size=page_size)
        self.kind = kind
