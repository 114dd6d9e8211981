from __future__ import annotations

import sqlite3
from collections.abc import Generator

import pytest

from sqlbind.parameters.parser import get_default_parser


@pytest.fixture(autouse=True)
def clear_parse_cache() -> Generator[None, None, None]:
    """Keep the shared template cache from leaking between tests."""
    get_default_parser().clear_cache()
    yield
    get_default_parser().clear_cache()


@pytest.fixture
def sqlite_connection() -> Generator[sqlite3.Connection, None, None]:
    """In-memory sqlite3 connection with a small ``users`` table."""
    connection = sqlite3.connect(":memory:")
    connection.execute("CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, age INTEGER)")
    connection.executemany(
        "INSERT INTO users (name, age) VALUES (?, ?)",
        [("alice", 30), ("bob", 25), ("carol", 41), ("dave", 25), ("erin", 35)],
    )
    connection.commit()
    try:
        yield connection
    finally:
        connection.close()
