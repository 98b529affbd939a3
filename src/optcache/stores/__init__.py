"""Options table and cache layer adapters.

The reconciler only talks to the two protocols defined here, so any backend
that can page through option rows or read the three cache buckets can be
audited.

Usage:
    >>> from optcache.stores import open_cache_layer
    >>> from optcache.stores.sqlite_table import SqliteOptionTable
    >>>
    >>> table = SqliteOptionTable("site.db")
    >>> cache = open_cache_layer(cache_file="cache-dump.json")
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from optcache.core.types import OptionRow


# =============================================================================
# Protocol Definitions
# =============================================================================


@runtime_checkable
class OptionTable(Protocol):
    """Protocol for the authoritative options table."""

    def fetch_page(self, limit: int, offset: int) -> "list[OptionRow]":
        """Fetch one page of rows, autoloaded rows first, then by row id.

        Args:
            limit: Maximum number of rows
            offset: Number of rows to skip

        Returns:
            Ordered list of option rows
        """
        ...

    def total_count(self) -> int:
        """Count the rows a full pagination would visit."""
        ...

    def get_row(self, name: str) -> "OptionRow | None":
        """Look up a single row by name, None when it does not exist."""
        ...


@runtime_checkable
class CacheLayer(Protocol):
    """Protocol for the object cache mirroring the options table.

    Every method returns ``ABSENT`` for a miss. A cold bucket is a miss, not an
    error.
    """

    def bulk_get(self) -> Any:
        """Read the bulk map of autoloaded options."""
        ...

    def keyed_get(self, name: str) -> Any:
        """Read one option from the per-key store."""
        ...

    def negative_get(self) -> Any:
        """Read the negative set of names known to be missing."""
        ...


# =============================================================================
# Factory
# =============================================================================


def open_cache_layer(
    cache_file: str | Path | None = None,
    redis_url: str | None = None,
    redis_prefix: str = "",
) -> CacheLayer:
    """Create the cache adapter for the given source.

    Exactly one of ``cache_file`` and ``redis_url`` must be given.

    Args:
        cache_file: Path to a JSON cache snapshot
        redis_url: URL of a Redis server holding the object cache
        redis_prefix: Key prefix used by the object cache on that server

    Returns:
        A CacheLayer implementation

    Raises:
        ValueError: If neither or both sources are given
    """
    if (cache_file is None) == (redis_url is None):
        raise ValueError("Specify exactly one cache source: a snapshot file or a Redis URL")

    if cache_file is not None:
        from optcache.stores.memory_cache import MemoryCache

        return MemoryCache.from_json(cache_file)

    from optcache.stores.redis_cache import RedisCache

    return RedisCache.from_url(redis_url, prefix=redis_prefix)


__all__ = ["CacheLayer", "OptionTable", "open_cache_layer"]
