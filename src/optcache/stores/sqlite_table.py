#!/usr/bin/env python
"""SQLite reader for the options table.

Reads a table with the classic options layout:

    option_id     INTEGER PRIMARY KEY
    option_name   TEXT UNIQUE
    option_value  TEXT
    autoload      TEXT

The database is always opened read-only.

Example usage:

    table = SqliteOptionTable("site.db", table_name="wp_options")
    rows = table.fetch_page(limit=500, offset=0)
    total = table.total_count()
    row = table.get_row("siteurl")
"""

import re
import sqlite3
from collections.abc import Iterable
from contextlib import closing
from pathlib import Path

from optcache.core.types import OptionRow
from optcache.exceptions import TableUnavailableError
from optcache.utils.config import AUTOLOAD_TRUTHY_VALUES, DEFAULT_TABLE_NAME, EXCLUDED_PREFIXES
from optcache.utils.loguru_setup import logger

__all__ = ["SqliteOptionTable"]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _like_prefix(prefix: str) -> str:
    """Build a LIKE pattern matching names that start with ``prefix`` literally."""
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"{escaped}%"


class SqliteOptionTable:
    """Class for reading option rows from a SQLite database."""

    def __init__(
        self,
        db_path: str | Path,
        table_name: str = DEFAULT_TABLE_NAME,
        exclude_prefixes: Iterable[str] = EXCLUDED_PREFIXES,
        autoload_values: Iterable[str] = AUTOLOAD_TRUTHY_VALUES,
    ) -> None:
        """Initialize the table reader.

        Args:
            db_path: Path to the SQLite database
            table_name: Name of the options table
            exclude_prefixes: Option name prefixes left out of pages and counts
            autoload_values: Flag encodings sorted first as autoloaded

        Raises:
            ValueError: If table_name is not a plain SQL identifier
        """
        if not _IDENTIFIER.match(table_name):
            raise ValueError(f"Invalid table name: {table_name!r}")

        self.db_path = Path(db_path)
        self.table_name = table_name
        self.exclude_prefixes = tuple(exclude_prefixes)
        self.autoload_values = tuple(sorted(value.lower() for value in autoload_values))

    def _get_connection(self) -> sqlite3.Connection:
        """Open a read-only connection to the database.

        Raises:
            TableUnavailableError: If the database doesn't exist or cannot be opened
        """
        if not self.db_path.exists():
            raise TableUnavailableError(f"Options database not found at {self.db_path}")

        try:
            return sqlite3.connect(f"{self.db_path.resolve().as_uri()}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise TableUnavailableError(f"Cannot open options database {self.db_path}: {e}") from e

    def _filter_clause(self) -> tuple[str, list[str]]:
        if not self.exclude_prefixes:
            return "", []
        clause = " AND ".join("option_name NOT LIKE ? ESCAPE '\\'" for _ in self.exclude_prefixes)
        return f"WHERE {clause}", [_like_prefix(prefix) for prefix in self.exclude_prefixes]

    def _query(self, sql: str, params: list) -> list[tuple]:
        with closing(self._get_connection()) as conn:
            try:
                return conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise TableUnavailableError(f"Query on {self.table_name} failed: {e}") from e

    def fetch_page(self, limit: int, offset: int) -> list[OptionRow]:
        """Fetch one page of rows, autoloaded first, then by ascending option_id."""
        where, params = self._filter_clause()
        placeholders = ", ".join("?" * len(self.autoload_values))
        sql = f"""
            SELECT option_name, option_value, autoload
            FROM {self.table_name}
            {where}
            ORDER BY CASE WHEN lower(trim(autoload)) IN ({placeholders}) THEN 0 ELSE 1 END,
                     option_id ASC
            LIMIT ? OFFSET ?
        """
        results = self._query(sql, [*params, *self.autoload_values, limit, offset])
        logger.debug(f"Fetched {len(results)} rows from {self.table_name} (limit={limit}, offset={offset})")
        return [OptionRow(name=name, value=value, autoload=autoload) for name, value, autoload in results]

    def total_count(self) -> int:
        where, params = self._filter_clause()
        results = self._query(f"SELECT COUNT(*) FROM {self.table_name} {where}", params)
        return int(results[0][0])

    def get_row(self, name: str) -> OptionRow | None:
        results = self._query(
            f"SELECT option_name, option_value, autoload FROM {self.table_name} WHERE option_name = ?",
            [name],
        )
        if not results:
            logger.debug(f"No row named {name!r} in {self.table_name}")
            return None
        option_name, value, autoload = results[0]
        return OptionRow(name=option_name, value=value, autoload=autoload)
