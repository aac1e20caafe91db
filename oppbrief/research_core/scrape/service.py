from __future__ import annotations

import time
from typing import Awaitable, Callable

import httpx

from oppbrief.research_core.models.interfaces import FetchedPage, FetchRequest
from oppbrief.services.logger import logger

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; OpportunityBriefBot/1.0; +https://example.com/bot)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

Fetcher = Callable[[FetchRequest], Awaitable[FetchedPage | None]]


class HttpFetcher:
    """Bounded-timeout GET. Returns the page, or None on any failure."""

    def __init__(
        self,
        *,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.headers = dict(headers or DEFAULT_HEADERS)
        self._transport = transport

    async def __call__(self, request: FetchRequest) -> FetchedPage | None:
        return await self.fetch(request)

    async def fetch(self, request: FetchRequest) -> FetchedPage | None:
        started = time.monotonic()
        timeout_seconds = max(float(request.timeout_seconds), 1.0)
        try:
            async with httpx.AsyncClient(
                timeout=timeout_seconds,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(request.url, headers=self.headers)
        except httpx.TimeoutException:
            logger.info(f"Timeout fetching {request.url} after {timeout_seconds:.0f}s")
            return None
        except httpx.HTTPError as exc:
            logger.info(f"Error fetching {request.url}: {type(exc).__name__}: {exc}")
            return None

        if not response.is_success:
            logger.debug(f"Failed to fetch {request.url}: HTTP {response.status_code}")
            return None

        return FetchedPage(
            url=request.url,
            final_url=str(response.url),
            status_code=int(response.status_code),
            html=response.text,
            timing_ms=int((time.monotonic() - started) * 1000),
        )
