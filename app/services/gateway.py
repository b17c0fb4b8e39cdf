from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Protocol

from pydantic import ValidationError

from app.config import Settings
from app.errors import CacheCorruptError, CacheWriteError
from app.models import PlaceRecord, QueryResult, decode_records, encode_records
from app.services.cache import CacheStore, Hit, Unavailable, escape_query, lookup

logger = logging.getLogger(__name__)


class PlaceSearch(Protocol):
    async def search(self, escaped_query: str) -> List[PlaceRecord]: ...


@dataclass
class _Flight:
    task: asyncio.Task
    waiters: int = 0


class GeocodeGateway:
    """Cache-aside lookup of Nominatim search results.

    The escaped query is the cache key and the upstream `q` value. A cache that
    cannot be read counts as a miss; every other failure aborts the request.
    """

    def __init__(self, cache: CacheStore, upstream: PlaceSearch, settings: Settings) -> None:
        self.cache = cache
        self.upstream = upstream
        self.settings = settings
        self._inflight: Dict[str, _Flight] = {}

    async def resolve(self, query: str) -> QueryResult:
        key = escape_query(query)

        cached = await lookup(self.cache, key)
        if isinstance(cached, Hit):
            try:
                records = decode_records(cached.value)
            except ValidationError as e:
                raise CacheCorruptError(f"cached value for {key!r} is not decodable", {"key": key}) from e
            logger.debug("cache hit for %r", key)
            return QueryResult(records=records, from_cache=True)

        if isinstance(cached, Unavailable):
            logger.warning("cache unavailable, fetching %r upstream: %s", key, cached.error)
        else:
            logger.debug("cache miss for %r", key)

        if self.settings.single_flight:
            records = await self._shared_fetch(key)
        else:
            records = await self._fetch_and_store(key)
        return QueryResult(records=records, from_cache=False)

    async def _fetch_and_store(self, key: str) -> List[PlaceRecord]:
        records = await self.upstream.search(key)
        try:
            await self.cache.set(key, encode_records(records), self.settings.cache_ttl_s)
        except CacheWriteError:
            if not self.settings.cache_write_best_effort:
                raise
            logger.warning("cache write failed for %r; returning upstream data", key, exc_info=True)
        return records

    async def _shared_fetch(self, key: str) -> List[PlaceRecord]:
        # Concurrent misses on one key await the same task. Shielded so one
        # cancelled caller does not abort the fetch for the others; the task
        # is cancelled once its last waiter is gone.
        flight = self._inflight.get(key)
        if flight is None:
            flight = _Flight(asyncio.ensure_future(self._fetch_and_store(key)))
            self._inflight[key] = flight
            flight.task.add_done_callback(lambda t: self._forget(key, t))
        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        finally:
            flight.waiters -= 1
            if flight.waiters == 0 and not flight.task.done():
                flight.task.cancel()

    def _forget(self, key: str, task: asyncio.Task) -> None:
        flight = self._inflight.get(key)
        if flight is not None and flight.task is task:
            del self._inflight[key]
        if not task.cancelled():
            task.exception()
