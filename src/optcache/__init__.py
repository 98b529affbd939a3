"""optcache - Option cache diagnostics.

Audits a table of named configuration values ("options") against the object
cache that mirrors it. The cache keeps options in three buckets:

- **alloptions**: one bulk map holding every autoloaded option
- **options**: per-key entries for options that are not autoloaded
- **notoptions**: names confirmed missing from the table

The Reconciler reports rows whose cached copy is unset, matching, only
loosely matching, mismatched, stored in the wrong bucket, or contradicted by
the negative cache. Nothing is ever written to the table or the cache.

Quick Start:
    >>> from optcache import Reconciler
    >>> from optcache.stores.memory_cache import MemoryCache
    >>> from optcache.stores.sqlite_table import SqliteOptionTable
    >>>
    >>> reconciler = Reconciler(SqliteOptionTable("site.db"), MemoryCache.from_json("dump.json"))
    >>> report = reconciler.diagnose()
    >>> print(f"{len(report.problems)} problems in {report.shown} options")
    >>>
    >>> reconciler.compare("siteurl").buckets
"""

__version__ = "0.1.0"

from typing import Any


# Lazy imports keep `import optcache` cheap for the CLI
def __getattr__(name: str) -> Any:
    """Lazy import for main package exports."""
    if name == "Reconciler":
        from .core.reconciler import Reconciler

        return Reconciler
    if name == "ReconcilerConfig":
        from .core.types import ReconcilerConfig

        return ReconcilerConfig
    if name == "Note":
        from .core.types import Note

        return Note
    if name == "Verdict":
        from .core.types import Verdict

        return Verdict
    if name == "OptionRow":
        from .core.types import OptionRow

        return OptionRow
    if name == "ABSENT":
        from .core.values import ABSENT

        return ABSENT
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ABSENT",
    "Note",
    "OptionRow",
    "Reconciler",
    "ReconcilerConfig",
    "Verdict",
    "__version__",
]
