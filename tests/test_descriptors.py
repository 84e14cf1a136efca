"""Tests for connection descriptor parsing."""

import pytest

from db_lens.descriptors import (
    MysqlDescriptor,
    PostgresDescriptor,
    SqliteDescriptor,
    brief,
    parse_descriptor,
    parse_descriptors,
)
from db_lens.errors import StructuralConfigError


class TestParseDescriptors:
    def test_non_list_returns_none(self):
        assert parse_descriptors({"type": "sqlite", "path": "a.db"}) is None
        assert parse_descriptors(None) is None
        assert parse_descriptors("sqlite") is None

    def test_empty_list_is_valid(self):
        assert parse_descriptors([]) == []

    def test_mixed_variants_keep_order(self):
        result = parse_descriptors(
            [
                {"type": "postgres", "name": "pg", "database": "app"},
                {"type": "sqlite", "path": "/tmp/app.db"},
                {"type": "mariadb", "name": "maria", "port": "3307"},
            ]
        )
        assert [type(d) for d in result] == [PostgresDescriptor, SqliteDescriptor, MysqlDescriptor]
        assert result[2].type == "mariadb"
        assert result[2].port == 3307

    def test_unknown_types_and_non_objects_are_skipped(self):
        result = parse_descriptors(
            [
                {"type": "oracle", "name": "legacy"},
                "not-an-entry",
                {"path": "/tmp/untyped.db"},
                {"type": "sqlite", "path": "/tmp/app.db"},
            ]
        )
        assert len(result) == 1
        assert result[0].path == "/tmp/app.db"

    def test_bad_field_is_structural(self):
        with pytest.raises(StructuralConfigError, match="mysql"):
            parse_descriptors([{"type": "mysql", "name": "db", "port": "not-a-port"}])


class TestServerDescriptor:
    def test_name_is_optional_at_parse_time(self):
        descriptor = parse_descriptor({"type": "postgres", "host": "db.local"})
        assert descriptor.name is None
        assert descriptor.identity is None

    def test_empty_name_has_no_identity(self):
        descriptor = parse_descriptor({"type": "mysql", "name": ""})
        assert descriptor.identity is None

    def test_default_ports(self):
        assert parse_descriptor({"type": "mysql", "name": "a"}).effective_port == 3306
        assert parse_descriptor({"type": "postgres", "name": "b"}).effective_port == 5432

    def test_blank_port_uses_default(self):
        assert parse_descriptor({"type": "mysql", "name": "a", "port": ""}).effective_port == 3306

    def test_numeric_port_and_password(self):
        descriptor = parse_descriptor(
            {"type": "postgres", "name": "pg", "port": 6543, "password": 1234}
        )
        assert descriptor.port == 6543
        assert descriptor.password == "1234"

    def test_labels(self):
        assert parse_descriptor({"type": "mysql"}).label == "MySQL"
        assert parse_descriptor({"type": "mariadb"}).label == "MariaDB"
        assert parse_descriptor({"type": "postgres"}).label == "Postgres"

    def test_detail_hides_password(self):
        descriptor = parse_descriptor(
            {
                "type": "mysql",
                "name": "shop",
                "host": "db.internal",
                "port": 3306,
                "username": "root",
                "password": "s3cret",
                "database": "shop",
            }
        )
        assert descriptor.description == "shop"
        assert descriptor.detail == "root@db.internal:3306/shop"
        assert "s3cret" not in descriptor.detail
        assert "s3cret" not in repr(descriptor)


class TestSqliteDescriptor:
    def test_identity_is_path(self):
        descriptor = SqliteDescriptor(path="/work/database/app.sqlite")
        assert descriptor.identity == "/work/database/app.sqlite"
        assert descriptor.description == "app.sqlite"
        assert descriptor.detail == "/work/database/app.sqlite"
        assert descriptor.label == "SQLite"


def test_brief():
    assert brief("/a/b/c.db") == "c.db"
    assert brief("") == ""
