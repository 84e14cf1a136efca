"""PostgreSQL engine."""

from sqlalchemy import Engine

from db_lens.engines.base import DEFAULT_PAGE_SIZE, SQLAlchemyEngine


class PostgresEngine(SQLAlchemyEngine):
    """Engine for a PostgreSQL server; tables are read from one schema."""

    kind = "postgres"

    def __init__(
        self,
        connection: Engine | None,
        *,
        schema: str = "public",
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(connection, page_size=page_size)
        self.schema = schema
