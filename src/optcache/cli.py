#!/usr/bin/env python3
"""Command-line interface for option cache diagnostics.

Usage:
    optcache --db site.db --cache-file dump.json diagnostic --per-page 100
    optcache --db site.db --redis-url redis://localhost:6379/0 compare siteurl --format json
"""

from enum import Enum
from pathlib import Path
from typing import NoReturn

import attr
import typer
from rich.console import Console
from rich.markup import escape

from optcache.core.reconciler import Reconciler
from optcache.core.types import Note, ReconcilerConfig, Verdict
from optcache.exceptions import OptionCacheError
from optcache.stores import open_cache_layer
from optcache.stores.sqlite_table import SqliteOptionTable
from optcache.utils.config import (
    DEFAULT_PAGE,
    DEFAULT_PER_PAGE,
    DEFAULT_REDIS_PREFIX,
    DEFAULT_TABLE_NAME,
    ENV_CACHE_FILE,
    ENV_DB_PATH,
    ENV_LOG_LEVEL,
    ENV_REDIS_URL,
)
from optcache.utils.formatters import OutputFormat, display_items
from optcache.utils.loguru_setup import configure_file, configure_level, disable_colors, logger

DIAGNOSTIC_FIELDS = ("option_name", "autoloaded", "db", "cache", "unexpected", "note")
COMPARE_FIELDS = ("bucket", "expected", "value", "verdict")
_PROBLEM_VERDICTS = frozenset(
    {Verdict.MISMATCH.value, Verdict.SHOULD_NOT_BE_PRESENT.value} | {note.value for note in Note if note.is_problem}
)

app = typer.Typer(
    help="Audit an options table against the object cache that mirrors it. Never writes to either.",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


class LogLevel(str, Enum):
    """Log level choices."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@attr.define
class Settings:
    """Connection settings shared by every command."""

    db: Path | None
    table: str
    cache_file: Path | None
    redis_url: str | None
    redis_prefix: str


def _fail(error: Exception) -> NoReturn:
    logger.error(f"{type(error).__name__}: {error}")
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(code=1)


def _build_reconciler(settings: Settings, per_page: int = DEFAULT_PER_PAGE) -> Reconciler:
    if settings.db is None:
        raise typer.BadParameter(f"an options database is required (or set {ENV_DB_PATH})", param_hint="--db")

    try:
        cache = open_cache_layer(
            cache_file=settings.cache_file,
            redis_url=settings.redis_url,
            redis_prefix=settings.redis_prefix,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--cache-file / --redis-url") from e

    try:
        table = SqliteOptionTable(settings.db, table_name=settings.table)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--table") from e

    return Reconciler(table, cache, ReconcilerConfig(per_page=per_page))


def _note_style(row: dict) -> str | None:
    try:
        note = Note(row["note"])
    except ValueError:
        return None
    if note.is_problem:
        return "bold red"
    if note is Note.LOOSE_MATCH:
        return "yellow"
    return None


def _verdict_style(row: dict) -> str | None:
    if row["verdict"] in _PROBLEM_VERDICTS:
        return "bold red"
    if row["verdict"] == "LOOSE_MATCH":
        return "yellow"
    return None


@app.callback()
def main(
    ctx: typer.Context,
    db: Path | None = typer.Option(None, "--db", envvar=ENV_DB_PATH, help="SQLite database holding the options table"),
    table: str = typer.Option(DEFAULT_TABLE_NAME, "--table", help="Name of the options table"),
    cache_file: Path | None = typer.Option(
        None, "--cache-file", envvar=ENV_CACHE_FILE, help="JSON snapshot of the options cache group"
    ),
    redis_url: str | None = typer.Option(
        None, "--redis-url", envvar=ENV_REDIS_URL, help="Redis URL of the object cache"
    ),
    redis_prefix: str = typer.Option(DEFAULT_REDIS_PREFIX, "--redis-prefix", help="Key prefix of the object cache"),
    log_level: LogLevel | None = typer.Option(
        None, "--log-level", "-l", envvar=ENV_LOG_LEVEL, case_sensitive=False, help="Log level for stderr"
    ),
    log_file: Path | None = typer.Option(None, "--log-file", help="Also write logs to this file"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
):
    """Audit an options table against the object cache that mirrors it."""
    if no_color:
        disable_colors(True)
        console.no_color = True
        err_console.no_color = True
    if log_file is not None:
        configure_file(log_file)
    if log_level is not None:
        configure_level(log_level.value)

    ctx.obj = Settings(
        db=db,
        table=table,
        cache_file=cache_file,
        redis_url=redis_url,
        redis_prefix=redis_prefix,
    )


@app.command()
def diagnostic(
    ctx: typer.Context,
    per_page: int = typer.Option(DEFAULT_PER_PAGE, "--per-page", min=1, help="Rows per page"),
    page: int = typer.Option(DEFAULT_PAGE, "--page", min=1, help="Page to show, starting at 1"),
    hide_notoptions: bool = typer.Option(False, "--hide-notoptions", help="Leave negative-cache entries out"),
    fmt: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", case_sensitive=False, help="Output format"),
):
    """Check cache values for every option, transients excluded."""
    try:
        reconciler = _build_reconciler(ctx.obj, per_page=per_page)
        report = reconciler.diagnose(page=page, per_page=per_page, hide_negative=hide_notoptions)
    except OptionCacheError as e:
        _fail(e)

    display_items(
        report.as_rows(),
        DIAGNOSTIC_FIELDS,
        fmt,
        console,
        title=f"Options page {page} ({report.shown} of {report.total})",
        row_style=_note_style,
    )

    if report.has_more:
        err_console.print(
            f"[bold yellow]Warning:[/bold yellow] showing {report.shown} of {report.total} options; "
            f"more rows are available (use --page={page + 1})"
        )


@app.command()
def compare(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Option name to inspect"),
    fmt: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", case_sensitive=False, help="Output format"),
):
    """Compare one option across the table and every cache bucket."""
    try:
        reconciler = _build_reconciler(ctx.obj)
        report = reconciler.compare(name)
    except OptionCacheError as e:
        _fail(e)

    display_items(
        report.as_rows(),
        COMPARE_FIELDS,
        fmt,
        console,
        title=f"Option {name}",
        row_style=_verdict_style,
    )


if __name__ == "__main__":
    app()
