from __future__ import annotations

import asyncio
import logging
from typing import List

import aiohttp
from pydantic import ValidationError
from yarl import URL

from app.config import Settings
from app.errors import UpstreamMalformedError, UpstreamUnavailableError
from app.models import PlaceRecord, decode_records

logger = logging.getLogger(__name__)


class NominatimClient:
    """Search client for the Nominatim /search endpoint."""

    def __init__(self, session: aiohttp.ClientSession, settings: Settings) -> None:
        self.session = session
        self.settings = settings

    def search_url(self, escaped_query: str) -> URL:
        # The query is already escaped; yarl must not quote it again.
        base = str(self.settings.nominatim_base_url).rstrip("/")
        return URL(f"{base}?q={escaped_query}&format=json", encoded=True)

    async def search(self, escaped_query: str) -> List[PlaceRecord]:
        """GET the search endpoint and decode the body into place records."""
        url = self.search_url(escaped_query)
        headers = {"User-Agent": self.settings.user_agent}
        timeout = aiohttp.ClientTimeout(total=self.settings.http_timeout_s)

        try:
            async with self.session.get(url, headers=headers, timeout=timeout) as resp:
                resp.raise_for_status()
                body = await resp.read()
        except aiohttp.ClientResponseError as e:
            raise UpstreamUnavailableError(
                f"Nominatim error: {e.status}", {"query": escaped_query, "status": e.status}
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamUnavailableError(
                f"Nominatim request failed: {e!r}", {"query": escaped_query}
            ) from e

        try:
            records = decode_records(body)
        except ValidationError as e:
            raise UpstreamMalformedError(
                f"Nominatim returned an unexpected body: {e.error_count()} errors",
                {"query": escaped_query},
            ) from e

        logger.debug("Nominatim returned %d records for %r", len(records), escaped_query)
        return records
