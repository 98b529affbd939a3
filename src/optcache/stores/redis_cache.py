#!/usr/bin/env python
"""Redis-backed cache layer.

Reads the options group of an object cache stored in Redis. Keys follow the
``{prefix}{group}:{name}`` scheme, and the bulk map and negative set are
themselves entries of the options group (``options:alloptions`` and
``options:notoptions``). Every entry must be JSON-encoded: a bare ``5``,
``true`` or ``false`` decodes to a number or boolean, and only text that is
not valid JSON is returned as the raw string.

Only GET is ever issued.
"""

from __future__ import annotations

import json
from typing import Any

import redis

from optcache.core.values import ABSENT
from optcache.exceptions import CacheUnavailableError
from optcache.utils.config import (
    BULK_CACHE_KEY,
    DEFAULT_REDIS_PREFIX,
    NEGATIVE_CACHE_KEY,
    OPTIONS_GROUP,
    REDIS_SOCKET_TIMEOUT,
)
from optcache.utils.loguru_setup import logger

__all__ = ["RedisCache"]


class RedisCache:
    """Read-only view of the options group in a Redis object cache."""

    def __init__(
        self,
        client: redis.Redis,
        prefix: str = DEFAULT_REDIS_PREFIX,
        group: str = OPTIONS_GROUP,
    ) -> None:
        """Initialize the cache view.

        Args:
            client: redis-py client, created with ``decode_responses=True``
            prefix: Key prefix shared by every cache entry of the site
            group: Cache group holding the options
        """
        self.client = client
        self.prefix = prefix
        self.group = group

    @classmethod
    def from_url(cls, url: str, prefix: str = DEFAULT_REDIS_PREFIX) -> RedisCache:
        """Create a cache view from a Redis URL such as ``redis://localhost:6379/0``."""
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
        )
        return cls(client, prefix=prefix)

    def cache_key(self, name: str) -> str:
        return f"{self.prefix}{self.group}:{name}"

    def _get(self, name: str) -> Any:
        key = self.cache_key(name)
        try:
            raw = self.client.get(key)
        except redis.RedisError as e:
            raise CacheUnavailableError(f"Redis read of {key} failed: {e}") from e

        if raw is None:
            return ABSENT
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.debug(f"Cache entry {key} is not JSON, using raw value")
            return raw

    def bulk_get(self) -> Any:
        return self._get(BULK_CACHE_KEY)

    def keyed_get(self, name: str) -> Any:
        return self._get(name)

    def negative_get(self) -> Any:
        return self._get(NEGATIVE_CACHE_KEY)
