#!/usr/bin/env python
"""Option cache diagnostic types and configuration.

Rows read from the options table, the point-in-time cache snapshot, and the
records the reconciler produces from them.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from typing import Any

import attr

from optcache.core.values import ABSENT, normalize_cached
from optcache.utils.config import (
    AUTOLOAD_TRUTHY_VALUES,
    DEFAULT_PER_PAGE,
    TRUNCATE_LENGTH,
    TRUNCATION_MARKER,
)

__all__ = [
    "BucketReport",
    "CacheSnapshot",
    "CompareReport",
    "DiagnosticRecord",
    "DiagnosticReport",
    "Note",
    "OptionRow",
    "ReconcilerConfig",
    "Verdict",
    "is_autoload",
]


class Note(str, Enum):
    """Classification of one option row (or negative-set entry).

    Attributes:
        FOUND_IN_NEGATIVE_SET: Live row whose name is also negatively cached
        CACHE_UNSET: Nothing cached for the row yet
        MATCH: Cached value equals the table value in type and value
        LOOSE_MATCH: Cached value equals the table value only after coercion
        MISMATCH: Cached value and table value disagree
        WRONG_BUCKET: Value cached in the bucket the row must never occupy
        NEGATIVE_BUT_REAL: Negative-set entry for a name that has a live row
        NEGATIVE_CONFIRMED: Negative-set entry with no live row in the table
    """

    FOUND_IN_NEGATIVE_SET = "FOUND_IN_NEGATIVE_SET"
    CACHE_UNSET = "CACHE_UNSET"
    MATCH = "MATCH"
    LOOSE_MATCH = "LOOSE_MATCH"
    MISMATCH = "MISMATCH"
    WRONG_BUCKET = "WRONG_BUCKET"
    NEGATIVE_BUT_REAL = "NEGATIVE_BUT_REAL"
    NEGATIVE_CONFIRMED = "NEGATIVE_CONFIRMED"

    @property
    def is_problem(self) -> bool:
        return self in _PROBLEM_NOTES


_PROBLEM_NOTES = frozenset({Note.FOUND_IN_NEGATIVE_SET, Note.MISMATCH, Note.WRONG_BUCKET, Note.NEGATIVE_BUT_REAL})


class Verdict(str, Enum):
    """Health of a single cache bucket for one option name."""

    MATCH = "MATCH"
    LOOSE_MATCH = "LOOSE_MATCH"
    SHOULD_NOT_BE_PRESENT = "SHOULD_NOT_BE_PRESENT"
    CACHE_UNSET = "CACHE_UNSET"
    MISMATCH = "MISMATCH"


def is_autoload(flag: Any, truthy_values: Iterable[str] = AUTOLOAD_TRUTHY_VALUES) -> bool:
    """Normalize an autoload flag to a boolean.

    Unknown encodings count as "no".
    """
    if isinstance(flag, bool):
        return flag
    if isinstance(flag, int):
        return flag == 1
    if isinstance(flag, bytes):
        flag = flag.decode("utf-8", errors="replace")
    if not isinstance(flag, str):
        return False
    return flag.strip().lower() in truthy_values


@attr.define(slots=True, frozen=True)
class OptionRow:
    """One row of the options table."""

    name: str = attr.field(validator=attr.validators.instance_of(str))
    value: str | None = attr.field(default="")
    autoload: Any = attr.field(default="no")


@attr.define(slots=True, frozen=True)
class CacheSnapshot:
    """Point-in-time view of the three cache buckets.

    The bulk map and negative set are read once per run. Per-key entries are
    fetched on demand through ``keyed``, since the per-key store cannot be
    enumerated.

    Attributes:
        bulk: Autoloaded values keyed by name (empty when the bucket is cold)
        negative: Names confirmed absent from the table (empty when cold)
        keyed: Callable returning the per-key cached value or ``ABSENT``
    """

    bulk: Mapping[str, Any] = attr.field(factory=dict)
    negative: Mapping[str, Any] = attr.field(factory=dict)
    keyed: Callable[[str], Any] = attr.field(default=lambda _name: ABSENT)

    def bulk_lookup(self, name: str) -> Any:
        return normalize_cached(self.bulk.get(name, ABSENT))

    def keyed_lookup(self, name: str) -> Any:
        return normalize_cached(self.keyed(name))

    def in_negative(self, name: str) -> bool:
        return name in self.negative


@attr.define(slots=True, frozen=True)
class DiagnosticRecord:
    """Outcome of classifying one option row or negative-set entry."""

    name: str
    autoload: str
    should_autoload: bool
    table_value: str
    cache_value: str
    unexpected_value: str
    note: Note

    def as_row(self) -> dict[str, str]:
        """Flatten the record into formatter columns."""
        return {
            "option_name": self.name,
            "autoloaded": self.autoload,
            "db": self.table_value,
            "cache": self.cache_value,
            "unexpected": self.unexpected_value,
            "note": self.note.value,
        }


@attr.define(slots=True, frozen=True)
class DiagnosticReport:
    """One page of bulk reconciliation results."""

    records: list[DiagnosticRecord]
    total: int
    offset: int
    shown: int
    page: int
    per_page: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.shown < self.total

    @property
    def problems(self) -> list[DiagnosticRecord]:
        return [record for record in self.records if record.note.is_problem]

    def as_rows(self) -> list[dict[str, str]]:
        return [record.as_row() for record in self.records]


@attr.define(slots=True, frozen=True)
class BucketReport:
    """Verdict for one cache bucket in a single-name comparison."""

    bucket: str
    expected: bool
    value: str
    verdict: Verdict

    def as_row(self) -> dict[str, str]:
        return {
            "bucket": self.bucket,
            "expected": "yes" if self.expected else "no",
            "value": self.value,
            "verdict": self.verdict.value,
        }


@attr.define(slots=True, frozen=True)
class CompareReport:
    """Deep diagnostic for a single option name.

    Attributes:
        name: Option name that was looked up
        row_exists: Whether the options table has a row for the name
        autoload: Raw autoload flag, or the "not present" label
        should_autoload: Normalized autoload flag (False without a row)
        table_value: Display form of the table value
        buckets: Verdicts for the bulk map, per-key store and negative set
        note: Classification the bulk report gives the row, None without a row
    """

    name: str
    row_exists: bool
    autoload: str
    should_autoload: bool
    table_value: str
    buckets: list[BucketReport]
    note: Note | None = None

    def verdict_for(self, bucket: str) -> Verdict:
        for report in self.buckets:
            if report.bucket == bucket:
                return report.verdict
        raise KeyError(bucket)

    def as_rows(self, table_label: str = "table") -> list[dict[str, str]]:
        """Flatten into formatter rows, table first, then one row per bucket."""
        table_row = {
            "bucket": table_label,
            "expected": self.autoload,
            "value": self.table_value,
            "verdict": self.note.value if self.note is not None else "",
        }
        return [table_row, *(report.as_row() for report in self.buckets)]


def _positive_int(_instance, attribute, value) -> None:
    if value <= 0:
        raise ValueError(f"{attribute.name} must be positive, got {value}")


@attr.define(slots=True, frozen=True)
class ReconcilerConfig:
    """Configuration for the Reconciler.

    Attributes:
        per_page: Default number of table rows fetched per page.
        truncate_length: Display length for values that agree with the cache.
        truncation_marker: Suffix appended to truncated values.
        autoload_values: Lower-case flag encodings that mean "autoload".

    Example:
        >>> config = ReconcilerConfig(per_page=100, autoload_values=("yes", "on"))
    """

    per_page: int = attr.field(default=DEFAULT_PER_PAGE, validator=[attr.validators.instance_of(int), _positive_int])
    truncate_length: int = attr.field(
        default=TRUNCATE_LENGTH, validator=[attr.validators.instance_of(int), _positive_int]
    )
    truncation_marker: str = attr.field(default=TRUNCATION_MARKER, validator=attr.validators.instance_of(str))
    autoload_values: frozenset[str] = attr.field(
        default=AUTOLOAD_TRUTHY_VALUES,
        converter=lambda values: frozenset(str(v).lower() for v in values),
    )
