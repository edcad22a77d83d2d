"""Key/value backend implementations.

Defines the KeyValueBackend ABC and two concrete implementations:
- RedisKeyValueBackend: Production backend using Redis with JSON serialization
- InMemoryKeyValueBackend: Dict-based backend with TTL, for testing/dev

Sessions and authorization state are the only things stored here. Unlike a
cache, a failing backend must not look like a miss: every Redis error is
raised as BackendUnavailable so the caller never mistakes an outage for
"no session".

get_kv_backend() picks the backend from settings: Redis when redis_url is
set, in-memory otherwise.
"""

from __future__ import annotations

import asyncio
import json
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from text2deck.errors import BackendUnavailable

log = structlog.get_logger(__name__)


class KeyValueBackend(ABC):
    """Narrow put/get-with-TTL capability the stores are written against."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored value for key, or None if not found / expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int) -> None:
        """Store value under key with TTL in seconds."""

    @abstractmethod
    async def pop(self, key: str) -> Any | None:
        """Atomically return and delete the value for key.

        Of two concurrent pops on the same key at most one sees the value.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key (no-op if key does not exist)."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return True if the backend is reachable."""

    async def close(self) -> None:
        """Release connections. No-op by default."""


# ---------------------------------------------------------------------------
# Redis backend
# ---------------------------------------------------------------------------


class RedisKeyValueBackend(KeyValueBackend):
    """Production backend backed by Redis.

    Values are JSON-serialised so they round-trip cleanly without pickle
    security risks. Expiry is enforced by Redis itself (SETEX), and pop uses
    GETDEL so single-use records stay single-use across workers.
    """

    def __init__(self, redis_url: str, client: Any = None) -> None:
        self._redis_url = redis_url
        self._client: Any = client  # redis.asyncio.Redis, set on first use

    def _get_client(self) -> Any:
        """Return or create the Redis client (lazy init, no I/O)."""
        if self._client is None:
            self._client = aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._get_client().get(key)
        except (RedisError, OSError) as exc:
            log.error("kv.redis.get_failed", error=str(exc))
            raise BackendUnavailable() from exc
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        serialised = json.dumps(value, default=str)
        try:
            await self._get_client().setex(key, ttl, serialised)
        except (RedisError, OSError) as exc:
            log.error("kv.redis.set_failed", error=str(exc))
            raise BackendUnavailable() from exc

    async def pop(self, key: str) -> Any | None:
        try:
            raw = await self._get_client().getdel(key)
        except (RedisError, OSError) as exc:
            log.error("kv.redis.pop_failed", error=str(exc))
            raise BackendUnavailable() from exc
        return None if raw is None else json.loads(raw)

    async def delete(self, key: str) -> None:
        try:
            await self._get_client().delete(key)
        except (RedisError, OSError) as exc:
            log.error("kv.redis.delete_failed", error=str(exc))
            raise BackendUnavailable() from exc

    async def ping(self) -> bool:
        try:
            return bool(await self._get_client().ping())
        except (RedisError, OSError) as exc:
            log.warning("kv.redis.ping_failed", error=str(exc))
            return False

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# ---------------------------------------------------------------------------
# In-memory backend (testing / dev)
# ---------------------------------------------------------------------------


class _Entry:
    """Single entry stored by InMemoryKeyValueBackend."""

    __slots__ = ("value", "expires_at")

    def __init__(self, value: Any, expires_at: float) -> None:
        self.value = value
        self.expires_at = expires_at

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class InMemoryKeyValueBackend(KeyValueBackend):
    """Dict-backed store with TTL support.

    Guarded by an asyncio.Lock. Suitable for testing and single-process dev
    environments. Does NOT persist across process restarts. Expired entries
    are evicted lazily on access.

    Args:
        clock: Monotonic seconds source used for expiry (time.monotonic).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def _live(self, key: str) -> _Entry | None:
        entry = self._store.get(key)
        if entry is not None and entry.is_expired(self._clock()):
            del self._store[key]
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._live(key)
            return None if entry is None else entry.value

    async def set(self, key: str, value: Any, ttl: int) -> None:
        # Same serialisation boundary as Redis: callers get copies, not aliases
        snapshot = json.loads(json.dumps(value, default=str))
        async with self._lock:
            self._store[key] = _Entry(snapshot, self._clock() + ttl)

    async def pop(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            del self._store[key]
            return entry.value

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._store.pop(key, None)

    async def ping(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def get_kv_backend(settings: Any) -> KeyValueBackend:
    """Return the KeyValueBackend configured by settings.

    Args:
        settings: Application Settings instance.

    Returns:
        RedisKeyValueBackend when redis_url is set, else InMemoryKeyValueBackend.
    """
    redis_url: str = getattr(settings, "redis_url", "")

    if redis_url:
        log.info("kv.backend_selected", backend="redis", url=redis_url.split("@")[-1])
        return RedisKeyValueBackend(redis_url)

    log.info("kv.backend_selected", backend="memory")
    return InMemoryKeyValueBackend()
