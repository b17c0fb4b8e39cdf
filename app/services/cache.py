from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Union
from urllib.parse import quote

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.config import Settings
from app.errors import CacheUnavailableError, CacheWriteError

logger = logging.getLogger(__name__)

# Kept verbatim in a path segment besides the unreserved set.
_PATH_SEGMENT_SAFE = "$&+:=@"


def escape_query(query: str) -> str:
    """Escape a raw query for use as one URL path segment.

    The result doubles as the cache key and the upstream `q` value.
    """
    return quote(query, safe=_PATH_SEGMENT_SAFE)


class CacheStore(Protocol):
    """Key-value store with per-key expiry. Missing keys give None; transport errors raise."""

    async def get(self, key: str) -> Optional[bytes]: ...

    async def set(self, key: str, value: bytes, ttl_s: float) -> None: ...

    async def close(self) -> None: ...


@dataclass(frozen=True)
class Hit:
    value: bytes


@dataclass(frozen=True)
class Miss:
    pass


@dataclass(frozen=True)
class Unavailable:
    error: CacheUnavailableError


CacheLookup = Union[Hit, Miss, Unavailable]


async def lookup(store: CacheStore, key: str) -> CacheLookup:
    try:
        value = await store.get(key)
    except CacheUnavailableError as e:
        return Unavailable(e)
    if not value:
        return Miss()
    return Hit(value)


@dataclass
class CacheEntry:
    value: bytes
    expires_at: float


class MemoryCacheStore:
    """In-process TTL store with max size eviction, for local runs and tests."""

    def __init__(self, *, max_size: int = 512) -> None:
        self.max_size = max_size
        self._store: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Optional[bytes]:
        now = time.monotonic()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.expires_at <= now:
                self._store.pop(key, None)
                return None
            return entry.value

    async def set(self, key: str, value: bytes, ttl_s: float) -> None:
        now = time.monotonic()
        with self._lock:
            self._purge_expired(now)
            if key not in self._store and len(self._store) >= self.max_size:
                self._evict_oldest()
            self._store[key] = CacheEntry(value=value, expires_at=now + ttl_s)

    def ttl(self, key: str) -> Optional[float]:
        """Seconds left before `key` expires, or None if it is not stored."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            return entry.expires_at - time.monotonic()

    async def close(self) -> None:
        with self._lock:
            self._store.clear()

    def _purge_expired(self, now: float) -> None:
        expired_keys = [key for key, entry in self._store.items() if entry.expires_at <= now]
        for key in expired_keys:
            self._store.pop(key, None)

    def _evict_oldest(self) -> None:
        if not self._store:
            return
        oldest_key = min(self._store.items(), key=lambda item: item[1].expires_at)[0]
        self._store.pop(oldest_key, None)


class RedisCacheStore:
    """CacheStore backed by redis.asyncio; one client shared by all requests."""

    def __init__(self, client: redis.Redis) -> None:
        self.redis = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisCacheStore":
        timeout = settings.http_timeout_s
        if settings.local:
            client = redis.Redis(
                host=settings.redis_url,
                port=6379,
                password=None,
                db=0,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
            )
        else:
            client = redis.Redis.from_url(
                settings.redis_url,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
            )
        return cls(client)

    async def get(self, key: str) -> Optional[bytes]:
        try:
            return await self.redis.get(key)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"redis GET failed: {e}", {"key": key}) from e

    async def set(self, key: str, value: bytes, ttl_s: float) -> None:
        try:
            await self.redis.set(key, value, px=max(1, int(ttl_s * 1000)))
        except (RedisError, OSError) as e:
            raise CacheWriteError(f"redis SET failed: {e}", {"key": key}) from e

    async def close(self) -> None:
        await self.redis.aclose()


def build_cache_store(settings: Settings) -> CacheStore:
    if settings.redis_url:
        logger.info("Using redis cache store (local=%s)", settings.local)
        return RedisCacheStore.from_settings(settings)
    logger.info("REDIS_URL not set; using in-memory cache store")
    return MemoryCacheStore(max_size=settings.cache_max_size)
