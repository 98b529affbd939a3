#!/usr/bin/env python3
"""Output formatting for diagnostic rows.

Every report is a list of flat dicts plus an ordered list of columns. The
same rows can be rendered as a rich table, JSON, CSV, YAML, or just counted.
"""

import csv
import io
import json
from collections.abc import Callable, Sequence
from enum import Enum

import yaml
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

__all__ = [
    "OutputFormat",
    "build_table",
    "display_items",
    "format_items",
]


class OutputFormat(str, Enum):
    """Output format choices for CLI arguments."""

    TABLE = "table"
    JSON = "json"
    CSV = "csv"
    YAML = "yaml"
    COUNT = "count"


class _ReportDumper(yaml.SafeDumper):
    pass


def _str_representer(dumper, data):
    # Serialized option values are often multi-line
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_ReportDumper.add_representer(str, _str_representer)


def _project(rows: Sequence[dict], fields: Sequence[str]) -> list[dict]:
    return [{field: row.get(field, "") for field in fields} for row in rows]


def build_table(
    rows: Sequence[dict],
    fields: Sequence[str],
    title: str | None = None,
    row_style: Callable[[dict], str | None] | None = None,
) -> Table:
    """Build a rich table from diagnostic rows.

    Args:
        rows: Flat dicts, one per table row
        fields: Columns to show, in order
        title: Optional table title
        row_style: Optional callback giving a rich style for a row

    Returns:
        Table ready for printing
    """
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    for field in fields:
        table.add_column(field, style="cyan" if field == fields[0] else None, overflow="fold")

    for row in _project(rows, fields):
        style = row_style(row) if row_style else None
        table.add_row(*(Text(str(row[field])) for field in fields), style=style)
    return table


def format_items(rows: Sequence[dict], fields: Sequence[str], fmt: OutputFormat) -> str:
    """Serialize rows for the machine-readable formats.

    Args:
        rows: Flat dicts, one per item
        fields: Columns to keep, in order
        fmt: Any format except TABLE

    Returns:
        Serialized text

    Raises:
        ValueError: If fmt is TABLE, which is rendered by build_table
    """
    projected = _project(rows, fields)

    if fmt is OutputFormat.JSON:
        return json.dumps(projected, ensure_ascii=False)
    if fmt is OutputFormat.CSV:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=list(fields), lineterminator="\n")
        writer.writeheader()
        writer.writerows(projected)
        return buffer.getvalue().rstrip("\n")
    if fmt is OutputFormat.YAML:
        return yaml.dump(
            projected,
            Dumper=_ReportDumper,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        ).rstrip("\n")
    if fmt is OutputFormat.COUNT:
        return str(len(projected))
    raise ValueError(f"Format {fmt.value!r} is rendered as a table, not serialized")


def display_items(
    rows: Sequence[dict],
    fields: Sequence[str],
    fmt: OutputFormat,
    console: Console,
    title: str | None = None,
    row_style: Callable[[dict], str | None] | None = None,
) -> None:
    """Print rows to the console in the requested format."""
    if fmt is OutputFormat.TABLE:
        console.print(build_table(rows, fields, title=title, row_style=row_style))
        return
    console.out(format_items(rows, fields, fmt), highlight=False)
