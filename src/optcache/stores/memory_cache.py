#!/usr/bin/env python
"""In-memory cache layer, optionally loaded from a JSON snapshot file.

Snapshot files hold the three buckets of the options group:

    {
        "alloptions": {"siteurl": "https://example.org", ...},
        "options": {"widget_text": "...", ...},
        "notoptions": {"missing_option": true, ...}
    }

A bucket that is missing or ``null`` is cold. ``notoptions`` may also be a
list of names.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from optcache.core.values import ABSENT
from optcache.exceptions import SnapshotFormatError
from optcache.utils.config import BULK_CACHE_KEY, NEGATIVE_CACHE_KEY, OPTIONS_GROUP
from optcache.utils.loguru_setup import logger

__all__ = ["MemoryCache"]


class MemoryCache:
    """Dict-backed cache layer.

    ``None`` for ``bulk`` or ``negative`` means the bucket is cold, which
    ``bulk_get``/``negative_get`` report as ``ABSENT``.
    """

    def __init__(
        self,
        bulk: Mapping[str, Any] | None = None,
        keyed: Mapping[str, Any] | None = None,
        negative: Mapping[str, Any] | Iterable[str] | None = None,
    ) -> None:
        self._bulk = dict(bulk) if bulk is not None else None
        self._keyed = dict(keyed or {})
        if negative is None or isinstance(negative, Mapping):
            self._negative = dict(negative) if negative is not None else None
        else:
            self._negative = dict.fromkeys(negative, True)

    @classmethod
    def from_json(cls, path: str | Path) -> MemoryCache:
        """Load a cache snapshot file.

        Args:
            path: Path to the JSON snapshot

        Returns:
            MemoryCache holding the snapshot's buckets

        Raises:
            SnapshotFormatError: If the file is unreadable or has the wrong shape
        """
        path = Path(path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise SnapshotFormatError(f"Cannot read cache snapshot {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise SnapshotFormatError(f"Cache snapshot {path} is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise SnapshotFormatError(f"Cache snapshot {path} must be a JSON object")

        bulk = payload.get(BULK_CACHE_KEY)
        keyed = payload.get(OPTIONS_GROUP)
        negative = payload.get(NEGATIVE_CACHE_KEY)

        if bulk is not None and not isinstance(bulk, dict):
            raise SnapshotFormatError(f"'{BULK_CACHE_KEY}' must be an object or null")
        if keyed is not None and not isinstance(keyed, dict):
            raise SnapshotFormatError(f"'{OPTIONS_GROUP}' must be an object or null")
        if negative is not None and not isinstance(negative, (dict, list)):
            raise SnapshotFormatError(f"'{NEGATIVE_CACHE_KEY}' must be an object, a list or null")
        if isinstance(negative, list) and not all(isinstance(name, (str, int, float)) for name in negative):
            raise SnapshotFormatError(f"'{NEGATIVE_CACHE_KEY}' list must hold option names only")

        logger.debug(
            f"Loaded cache snapshot {path}: "
            f"{len(bulk or {})} bulk, {len(keyed or {})} per-key, {len(negative or [])} negative entries"
        )
        return cls(bulk=bulk, keyed=keyed, negative=negative)

    def bulk_get(self) -> Any:
        if self._bulk is None:
            return ABSENT
        return self._bulk

    def keyed_get(self, name: str) -> Any:
        return self._keyed.get(name, ABSENT)

    def negative_get(self) -> Any:
        if self._negative is None:
            return ABSENT
        return self._negative
