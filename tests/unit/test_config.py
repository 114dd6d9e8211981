"""Unit tests for StatementConfig."""

import pytest

from sqlbind.config import (
    DEFAULT_FETCH_SIZE,
    DEFAULT_PARSE_CACHE_SIZE,
    MYSQL_STREAMING_FETCH_SIZE,
    StatementConfig,
    default_statement_config,
)
from sqlbind.parameters.types import ParameterStyle


def test_defaults() -> None:
    config = StatementConfig()

    assert config.parameter_style is None
    assert config.fetch_size == DEFAULT_FETCH_SIZE
    assert config.streaming_fetch_size == MYSQL_STREAMING_FETCH_SIZE == -(2**31)
    assert config.streaming_driver_markers == ("mysql",)
    assert config.parse_cache_size == DEFAULT_PARSE_CACHE_SIZE
    assert config == default_statement_config


@pytest.mark.parametrize(
    ("driver_name", "requested", "expected"),
    [
        ("pymysql.connections.Connection", None, MYSQL_STREAMING_FETCH_SIZE),
        ("MySQLdb.connections.Connection", 500, MYSQL_STREAMING_FETCH_SIZE),
        ("mysql.connector.connection.MySQLConnection", 10, MYSQL_STREAMING_FETCH_SIZE),
        ("sqlite3.Connection", None, DEFAULT_FETCH_SIZE),
        ("psycopg.Connection", 250, 250),
    ],
    ids=["pymysql_default", "mysqldb_requested", "connector", "sqlite_default", "psycopg_requested"],
)
def test_fetch_size_for(driver_name: str, requested: "int | None", expected: int) -> None:
    assert StatementConfig().fetch_size_for(driver_name, requested) == expected


def test_fetch_size_for_custom_markers() -> None:
    config = StatementConfig(streaming_driver_markers=("MariaDB",), streaming_fetch_size=-1)

    assert config.streaming_driver_markers == ("mariadb",)
    assert config.fetch_size_for("mariadb.connections.Connection") == -1
    assert config.fetch_size_for("pymysql.connections.Connection") == DEFAULT_FETCH_SIZE


def test_replace_creates_new_instance() -> None:
    config = StatementConfig()
    updated = config.replace(parameter_style=ParameterStyle.NUMERIC, fetch_size=10)

    assert updated is not config
    assert updated.parameter_style is ParameterStyle.NUMERIC
    assert updated.fetch_size == 10
    assert config.fetch_size == DEFAULT_FETCH_SIZE
    assert updated != config


def test_replace_rejects_unknown_field() -> None:
    with pytest.raises(TypeError, match="'dialect' is not a field in StatementConfig"):
        StatementConfig().replace(dialect="sqlite")


def test_hash_follows_equality() -> None:
    assert hash(StatementConfig(fetch_size=5)) == hash(StatementConfig(fetch_size=5))
    assert StatementConfig(fetch_size=5) != "StatementConfig"


def test_repr_lists_fields() -> None:
    text = repr(StatementConfig(fetch_size=7))
    assert text.startswith("StatementConfig(")
    assert "fetch_size=7" in text
