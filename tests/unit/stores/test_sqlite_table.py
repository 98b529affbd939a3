"""Tests for the read-only SQLite options table reader."""

import sqlite3
from contextlib import closing

import pytest

from optcache.exceptions import TableUnavailableError
from optcache.stores import OptionTable
from optcache.stores.sqlite_table import SqliteOptionTable

pytestmark = pytest.mark.integration


@pytest.fixture
def site_db(options_db):
    return options_db(
        [
            ("blogdescription", "Just another site", "no"),
            ("siteurl", "https://example.org", "yes"),
            ("_transient_feed", "cached feed", "no"),
            ("widget_text", "hello", "off"),
            ("xtransient_cache", "kept", "no"),
            ("blogname", "My Blog", "auto-on"),
            ("legacy", None, "no"),
        ]
    )


class TestSqliteOptionTable:
    """Paging, counting and single-row lookups."""

    def test_satisfies_protocol(self, site_db):
        assert isinstance(SqliteOptionTable(site_db), OptionTable)

    def test_autoloaded_rows_come_first_in_id_order(self, site_db):
        names = [row.name for row in SqliteOptionTable(site_db).fetch_page(limit=100, offset=0)]
        assert names == ["siteurl", "blogname", "blogdescription", "widget_text", "xtransient_cache", "legacy"]

    def test_transient_rows_are_excluded(self, site_db):
        table = SqliteOptionTable(site_db)
        names = {row.name for row in table.fetch_page(limit=100, offset=0)}

        assert "_transient_feed" not in names
        assert "xtransient_cache" in names
        assert table.total_count() == 6

    def test_no_exclusions(self, site_db):
        table = SqliteOptionTable(site_db, exclude_prefixes=())
        assert table.total_count() == 7

    def test_limit_and_offset(self, site_db):
        table = SqliteOptionTable(site_db)
        first = table.fetch_page(limit=2, offset=0)
        second = table.fetch_page(limit=2, offset=2)
        beyond = table.fetch_page(limit=2, offset=100)

        assert [row.name for row in first] == ["siteurl", "blogname"]
        assert [row.name for row in second] == ["blogdescription", "widget_text"]
        assert beyond == []

    def test_null_value_is_preserved(self, site_db):
        row = SqliteOptionTable(site_db).get_row("legacy")
        assert row is not None
        assert row.value is None

    def test_get_row(self, site_db):
        row = SqliteOptionTable(site_db).get_row("blogname")
        assert row.value == "My Blog"
        assert row.autoload == "auto-on"

    def test_get_row_missing(self, site_db):
        assert SqliteOptionTable(site_db).get_row("missing") is None

    def test_get_row_ignores_exclusions(self, site_db):
        assert SqliteOptionTable(site_db).get_row("_transient_feed") is not None

    def test_custom_table_name(self, options_db):
        db_path = options_db([("siteurl", "x", "yes")], table_name="blog_options")
        assert SqliteOptionTable(db_path, table_name="blog_options").total_count() == 1

    def test_database_is_not_modified(self, site_db):
        table = SqliteOptionTable(site_db)
        table.fetch_page(limit=10, offset=0)
        table.get_row("siteurl")

        with closing(sqlite3.connect(site_db)) as conn:
            count = conn.execute("SELECT COUNT(*) FROM wp_options").fetchone()[0]
        assert count == 7


class TestSqliteOptionTableErrors:
    def test_missing_database(self, tmp_path):
        table = SqliteOptionTable(tmp_path / "absent.db")
        with pytest.raises(TableUnavailableError, match="not found"):
            table.total_count()

    def test_missing_table(self, options_db):
        db_path = options_db([])
        with pytest.raises(TableUnavailableError):
            SqliteOptionTable(db_path, table_name="other_options").total_count()

    @pytest.mark.parametrize("table_name", ["wp_options; DROP TABLE x", "1options", "wp-options", ""])
    def test_invalid_table_name(self, tmp_path, table_name):
        with pytest.raises(ValueError, match="Invalid table name"):
            SqliteOptionTable(tmp_path / "site.db", table_name=table_name)
