#!/usr/bin/env python
"""Three-way reconciliation of the options table against the object cache.

Each table row is expected in exactly one cache bucket:

- autoloaded rows in the bulk map (``alloptions``),
- every other row in the per-key store (``options`` group),

and no live row may appear in the negative set (``notoptions``). The
reconciler reports where the cache disagrees with the table. It never writes
to either store.

Example:
    >>> from optcache.core.reconciler import Reconciler
    >>> from optcache.stores.memory_cache import MemoryCache
    >>> from optcache.stores.sqlite_table import SqliteOptionTable
    >>>
    >>> reconciler = Reconciler(SqliteOptionTable("site.db"), MemoryCache.from_json("dump.json"))
    >>> report = reconciler.diagnose(page=1, per_page=100)
    >>> for record in report.problems:
    ...     print(record.name, record.note.value)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

import attr

from optcache.core.types import (
    BucketReport,
    CacheSnapshot,
    CompareReport,
    DiagnosticRecord,
    DiagnosticReport,
    Note,
    OptionRow,
    ReconcilerConfig,
    Verdict,
    is_autoload,
)
from optcache.core.values import ABSENT, display_value, loose_equals, strict_equals, truncate
from optcache.stores import CacheLayer, OptionTable
from optcache.utils.config import (
    BULK_CACHE_KEY,
    NEGATIVE_AUTOLOAD_LABEL,
    NEGATIVE_CACHE_KEY,
    NOT_PRESENT,
    OPTIONS_GROUP,
    PLACEHOLDER,
)
from optcache.utils.loguru_setup import logger

__all__ = ["Reconciler"]


@attr.define(slots=True, frozen=True)
class _Lookup:
    """Everything the classification rules look at for one row."""

    stored: Any
    expected: Any
    unexpected: Any
    in_negative: bool


# First matching rule wins. WRONG_BUCKET is applied afterwards as an override.
_CLASSIFICATION_RULES: tuple[tuple[Callable[[_Lookup], bool], Note], ...] = (
    (lambda lookup: lookup.in_negative, Note.FOUND_IN_NEGATIVE_SET),
    (lambda lookup: lookup.expected is ABSENT, Note.CACHE_UNSET),
    (lambda lookup: strict_equals(lookup.expected, lookup.stored), Note.MATCH),
    (lambda lookup: loose_equals(lookup.expected, lookup.stored), Note.LOOSE_MATCH),
    (lambda lookup: True, Note.MISMATCH),
)


def _classify_lookup(lookup: _Lookup) -> Note:
    note = next(note for predicate, note in _CLASSIFICATION_RULES if predicate(lookup))
    if lookup.unexpected is not ABSENT:
        return Note.WRONG_BUCKET
    return note


def _value_verdict(cached: Any, stored: Any) -> Verdict:
    if cached is ABSENT:
        return Verdict.CACHE_UNSET
    if strict_equals(cached, stored):
        return Verdict.MATCH
    if loose_equals(cached, stored):
        return Verdict.LOOSE_MATCH
    return Verdict.MISMATCH


def _bucket_verdict(cached: Any, stored: Any, belongs: bool) -> Verdict:
    """Verdict for a bucket that should (``belongs``) or should not hold the name."""
    if cached is ABSENT:
        return Verdict.CACHE_UNSET
    if not belongs:
        return Verdict.SHOULD_NOT_BE_PRESENT
    return _value_verdict(cached, stored)


class Reconciler:
    """Compares option rows with the bulk map, per-key store and negative set.

    Args:
        table: Source of option rows
        cache: Cache layer to audit
        config: Display and paging settings
    """

    def __init__(self, table: OptionTable, cache: CacheLayer, config: ReconcilerConfig | None = None) -> None:
        self.table = table
        self.cache = cache
        self.config = config or ReconcilerConfig()

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    @staticmethod
    def _read_bucket(fetch: Callable[[], Any], label: str, accept_names: bool = False) -> Mapping[str, Any]:
        """Read one snapshot bucket as a map, empty when cold or malformed.

        Only the negative set may also be stored as a plain list of names.
        """
        value = fetch()
        if value is ABSENT or value is None or value is False:
            logger.info(f"{label} bucket is cold, treating it as empty")
            return {}
        if isinstance(value, Mapping):
            return value
        if accept_names and isinstance(value, (list, tuple, set, frozenset)):
            names = {}
            for name in value:
                try:
                    names[name] = True
                except TypeError:
                    logger.warning(f"{label} bucket holds an unhashable {type(name).__name__} entry, skipping it")
            return names
        logger.warning(f"{label} bucket holds a {type(value).__name__}, not a map; treating it as empty")
        return {}

    def snapshot(self) -> CacheSnapshot:
        """Read the bulk map and negative set once, and bind the per-key lookup."""
        bulk = self._read_bucket(self.cache.bulk_get, BULK_CACHE_KEY)
        negative = self._read_bucket(self.cache.negative_get, NEGATIVE_CACHE_KEY, accept_names=True)
        logger.debug(f"Cache snapshot: {len(bulk)} bulk entries, {len(negative)} negative entries")
        return CacheSnapshot(bulk=bulk, negative=negative, keyed=self.cache.keyed_get)

    # ------------------------------------------------------------------
    # Bulk reconciliation
    # ------------------------------------------------------------------

    def _should_autoload(self, row: OptionRow) -> bool:
        return is_autoload(row.autoload, self.config.autoload_values)

    def _display(self, value: Any, shorten: bool) -> str:
        text = display_value(value)
        if shorten:
            return truncate(text, self.config.truncate_length, self.config.truncation_marker)
        return text

    def classify(self, row: OptionRow, snapshot: CacheSnapshot) -> DiagnosticRecord:
        """Classify one table row against the cache snapshot.

        Args:
            row: Option row from the table
            snapshot: Cache buckets to compare against

        Returns:
            DiagnosticRecord with exactly one note
        """
        should_autoload = self._should_autoload(row)
        bulk_value = snapshot.bulk_lookup(row.name)
        keyed_value = snapshot.keyed_lookup(row.name)

        lookup = _Lookup(
            stored=row.value,
            expected=bulk_value if should_autoload else keyed_value,
            unexpected=keyed_value if should_autoload else bulk_value,
            in_negative=snapshot.in_negative(row.name),
        )
        note = _classify_lookup(lookup)

        # Agreeing values are shortened; a disagreement is shown in full
        agree = lookup.expected is ABSENT or loose_equals(lookup.expected, lookup.stored)

        return DiagnosticRecord(
            name=row.name,
            autoload=display_value(row.autoload),
            should_autoload=should_autoload,
            table_value=self._display(lookup.stored, shorten=agree),
            cache_value=self._display(lookup.expected, shorten=agree),
            unexpected_value="" if lookup.unexpected is ABSENT else display_value(lookup.unexpected),
            note=note,
        )

    def negative_records(self, snapshot: CacheSnapshot, seen: Iterable[str]) -> list[DiagnosticRecord]:
        """Build one record per negative-set entry.

        Names that are not among ``seen`` are looked up in the table, so a live
        row on another page (or one excluded from paging) is still caught.

        Args:
            snapshot: Cache snapshot holding the negative set
            seen: Names of the live rows classified in the same run

        Returns:
            Records flagged NEGATIVE_BUT_REAL for names that are live rows
        """
        seen = set(seen)
        records = []
        for name in snapshot.negative:
            if name in seen or self.table.get_row(str(name)) is not None:
                note = Note.NEGATIVE_BUT_REAL
            else:
                note = Note.NEGATIVE_CONFIRMED
            records.append(
                DiagnosticRecord(
                    name=str(name),
                    autoload=NEGATIVE_AUTOLOAD_LABEL,
                    should_autoload=False,
                    table_value=PLACEHOLDER,
                    cache_value=PLACEHOLDER,
                    unexpected_value="",
                    note=note,
                )
            )
        return records

    def reconcile(
        self,
        rows: Iterable[OptionRow],
        snapshot: CacheSnapshot,
        include_negative: bool = True,
    ) -> list[DiagnosticRecord]:
        """Classify rows, then append the negative-set pass."""
        records = [self.classify(row, snapshot) for row in rows]
        if include_negative:
            records.extend(self.negative_records(snapshot, (record.name for record in records)))
        return records

    def diagnose(self, page: int = 1, per_page: int | None = None, hide_negative: bool = False) -> DiagnosticReport:
        """Reconcile one page of the options table.

        Args:
            page: 1-based page number
            per_page: Rows per page, defaults to the configured page size
            hide_negative: Leave negative-set records out of the report

        Returns:
            DiagnosticReport with the page's records and paging totals

        Raises:
            ValueError: If page or per_page is not positive
        """
        per_page = per_page if per_page is not None else self.config.per_page
        if page < 1:
            raise ValueError(f"page must be positive, got {page}")
        if per_page < 1:
            raise ValueError(f"per_page must be positive, got {per_page}")

        offset = (page - 1) * per_page
        rows = self.table.fetch_page(per_page, offset)
        total = self.table.total_count()
        snapshot = self.snapshot()

        records = self.reconcile(rows, snapshot, include_negative=not hide_negative)
        report = DiagnosticReport(
            records=records,
            total=total,
            offset=offset,
            shown=len(rows),
            page=page,
            per_page=per_page,
        )
        logger.info(
            f"Reconciled {report.shown} of {report.total} options (page {page}), {len(report.problems)} problems"
        )
        return report

    # ------------------------------------------------------------------
    # Single-name comparison
    # ------------------------------------------------------------------

    def compare(self, name: str) -> CompareReport:
        """Deep diagnostic for one option name across the table and every bucket.

        A missing row is not an error: the table value reads "not present" and
        any cache entry for the name is reported as SHOULD_NOT_BE_PRESENT.
        """
        row = self.table.get_row(name)
        snapshot = self.snapshot()

        row_exists = row is not None
        should_autoload = row_exists and self._should_autoload(row)
        stored = row.value if row_exists else ABSENT

        bulk_value = snapshot.bulk_lookup(name)
        keyed_value = snapshot.keyed_lookup(name)

        bulk_verdict = _bucket_verdict(bulk_value, stored, belongs=row_exists and should_autoload)
        keyed_verdict = _bucket_verdict(keyed_value, stored, belongs=row_exists and not should_autoload)
        in_negative = snapshot.in_negative(name)
        if not in_negative:
            negative_verdict = Verdict.CACHE_UNSET
        elif row_exists:
            negative_verdict = Verdict.SHOULD_NOT_BE_PRESENT
        else:
            negative_verdict = Verdict.MATCH

        def shown(value: Any, verdict: Verdict) -> str:
            return self._display(value, shorten=verdict in (Verdict.MATCH, Verdict.LOOSE_MATCH))

        buckets = [
            BucketReport(
                bucket=BULK_CACHE_KEY,
                expected=row_exists and should_autoload,
                value=shown(bulk_value, bulk_verdict),
                verdict=bulk_verdict,
            ),
            BucketReport(
                bucket=OPTIONS_GROUP,
                expected=row_exists and not should_autoload,
                value=shown(keyed_value, keyed_verdict),
                verdict=keyed_verdict,
            ),
            BucketReport(
                bucket=NEGATIVE_CACHE_KEY,
                expected=not row_exists,
                value=display_value(snapshot.negative[name] if in_negative else ABSENT),
                verdict=negative_verdict,
            ),
        ]

        if row_exists:
            record = self.classify(row, snapshot)
            table_value = record.table_value
            note = record.note
            autoload = record.autoload
        else:
            logger.info(f"Option {name!r} has no table row")
            table_value = NOT_PRESENT
            note = None
            autoload = NOT_PRESENT

        return CompareReport(
            name=name,
            row_exists=row_exists,
            autoload=autoload,
            should_autoload=should_autoload,
            table_value=table_value,
            buckets=buckets,
            note=note,
        )
