#!/usr/bin/env python3
"""Loguru-based logging for optcache.

The diagnostics write their report to stdout, so every log line goes to
stderr (and optionally to a rotating file) where it cannot corrupt JSON, CSV
or YAML output.

Basic Usage Examples:
    from optcache.utils.loguru_setup import logger

    logger.configure_level("DEBUG")
    logger.debug("Fetched page of options")
    logger.warning("Bulk cache bucket is cold")

Environment Variables:
    OPTCACHE_LOG_LEVEL: Global log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    OPTCACHE_LOG_FILE: Optional log file path for file output
    OPTCACHE_DISABLE_COLORS: Set to "true" to disable colored output
"""

import os
import sys
from pathlib import Path

from loguru import logger as _loguru_logger

from optcache.utils.config import ENV_DISABLE_COLORS, ENV_LOG_FILE, ENV_LOG_LEVEL, LOG_LEVELS

# Remove default loguru handler to have full control
_loguru_logger.remove()

DEFAULT_LOG_LEVEL = "WARNING"

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

SIMPLE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def _stderr_sink(message) -> None:
    # Resolve sys.stderr per message so redirected streams are honored
    sys.stderr.write(message)


class OptcacheLogger:
    """Thin wrapper around loguru with runtime level, file and color control."""

    def __init__(self) -> None:
        level = os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()
        self._current_level = level if level in LOG_LEVELS else DEFAULT_LOG_LEVEL
        self._log_file = os.getenv(ENV_LOG_FILE)
        self._disable_colors = os.getenv(ENV_DISABLE_COLORS, "false").lower() == "true"
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Rebuild the loguru handlers from the current settings."""
        _loguru_logger.remove()

        format_template = SIMPLE_FORMAT if self._disable_colors else LOG_FORMAT

        _loguru_logger.add(
            _stderr_sink,
            level=self._current_level,
            format=format_template,
            colorize=not self._disable_colors,
            backtrace=True,
            diagnose=False,
        )

        if self._log_file:
            log_path = Path(self._log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            _loguru_logger.add(
                str(log_path),
                level=self._current_level,
                format=SIMPLE_FORMAT,
                rotation="10 MB",
                retention="1 week",
                compression="zip",
                backtrace=True,
                diagnose=False,
            )

    def configure_level(self, level: str) -> "OptcacheLogger":
        """Configure the log level.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

        Returns:
            Self for method chaining

        Raises:
            ValueError: If the level is not a known log level
        """
        level = level.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        self._current_level = level
        self._setup_logger()
        return self

    def configure_file(self, log_file: str | Path | None) -> "OptcacheLogger":
        """Configure file logging, or disable it with None."""
        self._log_file = str(log_file) if log_file else None
        self._setup_logger()
        return self

    def disable_colors(self, disable: bool = True) -> "OptcacheLogger":
        """Enable or disable colored output."""
        self._disable_colors = disable
        self._setup_logger()
        return self

    @property
    def level(self) -> str:
        return self._current_level

    # Delegate logging methods to loguru, reporting the caller's location
    def debug(self, message: str, *args, **kwargs):
        _loguru_logger.opt(depth=1).debug(message, *args, **kwargs)
        return self

    def info(self, message: str, *args, **kwargs):
        _loguru_logger.opt(depth=1).info(message, *args, **kwargs)
        return self

    def warning(self, message: str, *args, **kwargs):
        _loguru_logger.opt(depth=1).warning(message, *args, **kwargs)
        return self

    def error(self, message: str, *args, **kwargs):
        _loguru_logger.opt(depth=1).error(message, *args, **kwargs)
        return self

    def add_sink(self, sink, **kwargs) -> int:
        """Attach an extra loguru sink (used by tests to capture output)."""
        return _loguru_logger.add(sink, **kwargs)

    def remove_sink(self, handler_id: int) -> None:
        _loguru_logger.remove(handler_id)


# Create the global logger instance
logger = OptcacheLogger()


def configure_level(level: str):
    """Configure the global logger level."""
    logger.configure_level(level)


def configure_file(log_file: str | Path | None):
    """Configure global file logging."""
    logger.configure_file(log_file)


def disable_colors(disable: bool = True):
    """Enable or disable colored output globally."""
    logger.disable_colors(disable)
