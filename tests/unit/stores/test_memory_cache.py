"""Tests for the in-memory cache layer, snapshot loading and open_cache_layer()."""

import json

import pytest

from optcache.core.values import ABSENT
from optcache.exceptions import OptionCacheError, SnapshotFormatError
from optcache.stores import CacheLayer, open_cache_layer
from optcache.stores.memory_cache import MemoryCache


@pytest.fixture
def snapshot_file(tmp_path):
    def _write(payload, raw: bool = False):
        path = tmp_path / "cache.json"
        path.write_text(payload if raw else json.dumps(payload), encoding="utf-8")
        return path

    return _write


class TestMemoryCache:
    def test_satisfies_protocol(self):
        assert isinstance(MemoryCache(), CacheLayer)

    def test_cold_buckets_are_absent(self):
        cache = MemoryCache()
        assert cache.bulk_get() is ABSENT
        assert cache.negative_get() is ABSENT
        assert cache.keyed_get("siteurl") is ABSENT

    def test_empty_buckets_are_not_cold(self):
        cache = MemoryCache(bulk={}, negative={})
        assert cache.bulk_get() == {}
        assert cache.negative_get() == {}

    def test_negative_list_becomes_map(self):
        assert MemoryCache(negative=["a", "b"]).negative_get() == {"a": True, "b": True}

    def test_keyed_values_keep_their_type(self):
        cache = MemoryCache(keyed={"count": 5, "flag": False, "nothing": None})
        assert cache.keyed_get("count") == 5
        assert cache.keyed_get("flag") is False
        assert cache.keyed_get("nothing") is None

    def test_copies_input(self):
        bulk = {"a": "1"}
        cache = MemoryCache(bulk=bulk)
        bulk["b"] = "2"
        assert "b" not in cache.bulk_get()


class TestFromJson:
    def test_loads_all_buckets(self, snapshot_file):
        path = snapshot_file(
            {
                "alloptions": {"siteurl": "https://example.org"},
                "options": {"widget_text": "hello"},
                "notoptions": {"missing_option": True},
            }
        )
        cache = MemoryCache.from_json(path)

        assert cache.bulk_get() == {"siteurl": "https://example.org"}
        assert cache.keyed_get("widget_text") == "hello"
        assert cache.negative_get() == {"missing_option": True}

    def test_missing_and_null_buckets_are_cold(self, snapshot_file):
        cache = MemoryCache.from_json(snapshot_file({"alloptions": None}))
        assert cache.bulk_get() is ABSENT
        assert cache.negative_get() is ABSENT

    def test_negative_list(self, snapshot_file):
        cache = MemoryCache.from_json(snapshot_file({"notoptions": ["gone"]}))
        assert cache.negative_get() == {"gone": True}

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotFormatError, match="Cannot read"):
            MemoryCache.from_json(tmp_path / "absent.json")

    def test_invalid_json(self, snapshot_file):
        with pytest.raises(SnapshotFormatError, match="not valid JSON"):
            MemoryCache.from_json(snapshot_file("{not json", raw=True))

    @pytest.mark.parametrize(
        "payload",
        [["alloptions"], {"alloptions": "x"}, {"options": [1]}, {"notoptions": "gone"}],
    )
    def test_wrong_shape(self, snapshot_file, payload):
        with pytest.raises(SnapshotFormatError):
            MemoryCache.from_json(snapshot_file(payload))

    @pytest.mark.parametrize("names", [[["a"]], [{"a": True}], ["a", None]])
    def test_negative_list_must_hold_names(self, snapshot_file, names):
        with pytest.raises(SnapshotFormatError, match="option names only"):
            MemoryCache.from_json(snapshot_file({"notoptions": names}))

    def test_errors_share_base_class(self, tmp_path):
        with pytest.raises(OptionCacheError):
            MemoryCache.from_json(tmp_path / "absent.json")


class TestOpenCacheLayer:
    def test_snapshot_file(self, snapshot_file):
        cache = open_cache_layer(cache_file=snapshot_file({"alloptions": {"a": "1"}}))
        assert isinstance(cache, MemoryCache)
        assert cache.bulk_get() == {"a": "1"}

    def test_requires_a_source(self):
        with pytest.raises(ValueError, match="exactly one"):
            open_cache_layer()

    def test_rejects_both_sources(self, snapshot_file):
        with pytest.raises(ValueError, match="exactly one"):
            open_cache_layer(cache_file=snapshot_file({}), redis_url="redis://localhost:6379/0")
