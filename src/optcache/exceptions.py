#!/usr/bin/env python
"""Exception classes raised by the option table and cache adapters.

Reconciliation itself never raises: anything it cannot find becomes the
``ABSENT`` sentinel. These errors only come from the stores, when a backend
cannot be reached or read at all.
"""

__all__ = [
    "CacheUnavailableError",
    "OptionCacheError",
    "SnapshotFormatError",
    "TableUnavailableError",
]


class OptionCacheError(Exception):
    """Base exception for option cache diagnostics."""


class TableUnavailableError(OptionCacheError):
    """Raised when the options table cannot be opened or queried."""


class CacheUnavailableError(OptionCacheError):
    """Raised when the cache backend cannot be reached."""


class SnapshotFormatError(OptionCacheError):
    """Raised when a cache snapshot file is not valid JSON of the expected shape."""
