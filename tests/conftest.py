#!/usr/bin/env python
"""Root conftest.py that provides fixtures for the test suite.

This file contains:
1. A factory for temporary SQLite options databases
2. A factory for in-memory cache layers
3. Stub collaborators for exercising the reconciler without any storage
4. A loguru capture fixture
"""

import sqlite3
from collections.abc import Iterable
from contextlib import closing

import pytest

from optcache.core.types import OptionRow
from optcache.stores.memory_cache import MemoryCache
from optcache.utils.loguru_setup import logger


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: tests that read a real SQLite database file")


class StubTable:
    """OptionTable backed by a list of rows, in the order given."""

    def __init__(self, rows: Iterable[OptionRow]) -> None:
        self.rows = list(rows)
        self.calls: list[tuple[int, int]] = []

    def fetch_page(self, limit: int, offset: int) -> list[OptionRow]:
        self.calls.append((limit, offset))
        return self.rows[offset : offset + limit]

    def total_count(self) -> int:
        return len(self.rows)

    def get_row(self, name: str) -> OptionRow | None:
        return next((row for row in self.rows if row.name == name), None)


@pytest.fixture
def stub_table():
    """Build a StubTable from (name, value, autoload) tuples."""

    def _make(*rows: tuple) -> StubTable:
        return StubTable(OptionRow(name=name, value=value, autoload=autoload) for name, value, autoload in rows)

    return _make


@pytest.fixture
def memory_cache():
    """Build a MemoryCache; pass None for a cold bucket."""

    def _make(bulk=None, keyed=None, negative=None) -> MemoryCache:
        return MemoryCache(bulk=bulk, keyed=keyed, negative=negative)

    return _make


@pytest.fixture
def options_db(tmp_path):
    """Create a SQLite database with a wp_options table holding the given rows.

    Rows are (option_name, option_value, autoload) tuples; option_id follows
    insertion order.
    """

    def _make(rows: Iterable[tuple], table_name: str = "wp_options"):
        db_path = tmp_path / "options.db"
        with closing(sqlite3.connect(db_path)) as conn:
            conn.execute(
                f"""
                CREATE TABLE {table_name} (
                    option_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    option_name TEXT NOT NULL UNIQUE,
                    option_value TEXT,
                    autoload TEXT NOT NULL DEFAULT 'yes'
                )
                """
            )
            conn.executemany(
                f"INSERT INTO {table_name} (option_name, option_value, autoload) VALUES (?, ?, ?)",
                list(rows),
            )
            conn.commit()
        return db_path

    return _make


@pytest.fixture
def log_messages():
    """Collect formatted log messages emitted while the test runs."""
    messages: list[str] = []
    handler_id = logger.add_sink(lambda message: messages.append(str(message)), level="DEBUG", format="{level} {message}")
    try:
        yield messages
    finally:
        logger.remove_sink(handler_id)
