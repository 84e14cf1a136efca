"""Storage engines behind one DatabaseEngine contract."""

from db_lens.engines.base import Column, Condition, DatabaseEngine, RowPage, SQLAlchemyEngine
from db_lens.engines.connector import get_connection_for
from db_lens.engines.mysql import MysqlEngine
from db_lens.engines.postgres import PostgresEngine
from db_lens.engines.sqlite import SqliteEngine

__all__ = [
    "Column",
    "Condition",
    "DatabaseEngine",
    "MysqlEngine",
    "PostgresEngine",
    "RowPage",
    "SQLAlchemyEngine",
    "SqliteEngine",
    "get_connection_for",
]
