"""Unit tests for option types, report records and ReconcilerConfig."""

import attr
import pytest

from optcache.core.types import (
    CacheSnapshot,
    DiagnosticRecord,
    DiagnosticReport,
    Note,
    OptionRow,
    ReconcilerConfig,
    is_autoload,
)
from optcache.core.values import ABSENT


# =============================================================================
# Autoload normalization
# =============================================================================


class TestIsAutoload:
    @pytest.mark.parametrize("flag", ["yes", "on", "auto", "auto-on", "true", "1", " Yes ", "ON", b"yes", True, 1])
    def test_truthy(self, flag):
        assert is_autoload(flag) is True

    @pytest.mark.parametrize("flag", ["no", "off", "auto-off", "", "maybe", None, False, 0, 2, 1.0, b"no"])
    def test_falsy(self, flag):
        assert is_autoload(flag) is False

    def test_custom_values(self):
        assert is_autoload("on", frozenset({"yes"})) is False
        assert is_autoload("yes", frozenset({"yes"})) is True


# =============================================================================
# OptionRow and CacheSnapshot
# =============================================================================


class TestOptionRow:
    def test_defaults(self):
        row = OptionRow("siteurl")
        assert row.value == ""
        assert row.autoload == "no"

    def test_name_must_be_string(self):
        with pytest.raises(TypeError):
            OptionRow(None)

    def test_frozen(self):
        row = OptionRow("siteurl", "x", "yes")
        with pytest.raises(attr.exceptions.FrozenInstanceError):
            row.value = "y"


class TestCacheSnapshot:
    def test_lookups_normalize_false_to_absent(self):
        snapshot = CacheSnapshot(bulk={"a": False, "b": None}, keyed=lambda name: False)

        assert snapshot.bulk_lookup("a") is ABSENT
        assert snapshot.bulk_lookup("b") is None
        assert snapshot.bulk_lookup("missing") is ABSENT
        assert snapshot.keyed_lookup("anything") is ABSENT

    def test_defaults_are_empty(self):
        snapshot = CacheSnapshot()

        assert snapshot.bulk_lookup("a") is ABSENT
        assert snapshot.keyed_lookup("a") is ABSENT
        assert snapshot.in_negative("a") is False

    def test_in_negative(self):
        snapshot = CacheSnapshot(negative={"gone": True})
        assert snapshot.in_negative("gone") is True
        assert snapshot.in_negative("here") is False


# =============================================================================
# Reports
# =============================================================================


def _record(name: str, note: Note) -> DiagnosticRecord:
    return DiagnosticRecord(
        name=name,
        autoload="yes",
        should_autoload=True,
        table_value="1",
        cache_value="1",
        unexpected_value="",
        note=note,
    )


class TestNote:
    @pytest.mark.parametrize(
        "note", [Note.FOUND_IN_NEGATIVE_SET, Note.MISMATCH, Note.WRONG_BUCKET, Note.NEGATIVE_BUT_REAL]
    )
    def test_problem_notes(self, note):
        assert note.is_problem is True

    @pytest.mark.parametrize("note", [Note.MATCH, Note.LOOSE_MATCH, Note.CACHE_UNSET, Note.NEGATIVE_CONFIRMED])
    def test_healthy_notes(self, note):
        assert note.is_problem is False


class TestDiagnosticReport:
    def test_as_row_columns(self):
        row = _record("siteurl", Note.MATCH).as_row()
        assert row == {
            "option_name": "siteurl",
            "autoloaded": "yes",
            "db": "1",
            "cache": "1",
            "unexpected": "",
            "note": "MATCH",
        }

    @pytest.mark.parametrize(
        ("offset", "shown", "total", "has_more"),
        [(0, 2, 5, True), (4, 1, 5, False), (0, 0, 0, False), (0, 5, 5, False)],
    )
    def test_has_more(self, offset, shown, total, has_more):
        report = DiagnosticReport(records=[], total=total, offset=offset, shown=shown, page=1, per_page=2)
        assert report.has_more is has_more

    def test_problems(self):
        records = [_record("a", Note.MATCH), _record("b", Note.MISMATCH), _record("c", Note.NEGATIVE_CONFIRMED)]
        report = DiagnosticReport(records=records, total=3, offset=0, shown=3, page=1, per_page=10)
        assert [record.name for record in report.problems] == ["b"]


# =============================================================================
# ReconcilerConfig
# =============================================================================


class TestReconcilerConfig:
    def test_defaults(self):
        config = ReconcilerConfig()
        assert config.per_page == 500
        assert config.truncate_length == 200
        assert config.truncation_marker == "..."
        assert "auto-on" in config.autoload_values

    def test_autoload_values_are_lowercased(self):
        config = ReconcilerConfig(autoload_values=["YES", "On"])
        assert config.autoload_values == frozenset({"yes", "on"})

    @pytest.mark.parametrize("field", ["per_page", "truncate_length"])
    def test_rejects_non_positive(self, field):
        with pytest.raises(ValueError):
            ReconcilerConfig(**{field: 0})

    def test_rejects_non_int(self):
        with pytest.raises(TypeError):
            ReconcilerConfig(per_page="10")
