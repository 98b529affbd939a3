#!/usr/bin/env python
"""Centralized configuration for option cache diagnostics.

Constants shared by the reconciler, the stores and the CLI live here so there
is a single source of truth for page sizes, display limits and the encodings
of the autoload flag.
"""

from typing import Final

# Logging
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Paging
DEFAULT_PER_PAGE: Final = 500
DEFAULT_PAGE: Final = 1

# Display
TRUNCATE_LENGTH: Final = 200
TRUNCATION_MARKER: Final = "..."
PLACEHOLDER: Final = "--"
NOT_PRESENT: Final = "not present"
NEGATIVE_AUTOLOAD_LABEL: Final = "NEGATIVE"

# Every encoding of the autoload flag that means "load into the bulk map".
# Newer schemas store on/auto/auto-on next to the historical yes/no.
AUTOLOAD_TRUTHY_VALUES: Final[frozenset[str]] = frozenset({"yes", "on", "auto", "auto-on", "true", "1"})

# Options whose names start with these prefixes are skipped by the bulk report
EXCLUDED_PREFIXES: Final[tuple[str, ...]] = ("_transient",)

# Table layout
DEFAULT_TABLE_NAME: Final = "wp_options"

# Cache layout
OPTIONS_GROUP: Final = "options"
BULK_CACHE_KEY: Final = "alloptions"
NEGATIVE_CACHE_KEY: Final = "notoptions"
DEFAULT_REDIS_PREFIX: Final = ""
REDIS_SOCKET_TIMEOUT: Final = 5.0  # Seconds

# Environment variable names for CLI defaults
ENV_VAR_PREFIX: Final = "OPTCACHE"
ENV_DB_PATH: Final = f"{ENV_VAR_PREFIX}_DB"
ENV_CACHE_FILE: Final = f"{ENV_VAR_PREFIX}_CACHE_FILE"
ENV_REDIS_URL: Final = f"{ENV_VAR_PREFIX}_REDIS_URL"
ENV_LOG_LEVEL: Final = f"{ENV_VAR_PREFIX}_LOG_LEVEL"
ENV_LOG_FILE: Final = f"{ENV_VAR_PREFIX}_LOG_FILE"
ENV_DISABLE_COLORS: Final = f"{ENV_VAR_PREFIX}_DISABLE_COLORS"
