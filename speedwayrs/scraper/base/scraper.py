"""Base scraper with shared rate limiting and connect retries."""
import logging
from typing import Optional

import httpx

from speedwayrs.core.config import settings
from speedwayrs.scraper.base.rate_limiter import RateLimiter
from speedwayrs.scraper.base.retry import with_retry

logger = logging.getLogger(__name__)


class BaseScraper:
    """Base class for all scrapers.

    Every request goes through the injected ``RateLimiter``, so scrapers that
    share one limiter share one request budget. Connection failures are
    retried forever with a fixed delay; any other transport error reaches the
    caller. Status codes are not checked: error pages come back as text too.
    """

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: Optional[float] = None,
        connect_retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._rate_limiter = rate_limiter or RateLimiter.from_milliseconds(settings.SCRAPER_TICK_INTERVAL_MS)
        self._timeout = timeout if timeout is not None else settings.SCRAPER_TIMEOUT
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        retry_delay = (
            connect_retry_delay if connect_retry_delay is not None
            else settings.SCRAPER_CONNECT_RETRY_DELAY
        )
        self._send_with_retry = with_retry(
            max_attempts=None,
            base_delay=retry_delay,
            exponential=False,
            exceptions=(httpx.ConnectError,),
        )(self._send)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                headers={
                    "User-Agent": settings.SCRAPER_USER_AGENT,
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                    "Accept-Language": "pl-PL,pl;q=0.9,en;q=0.8",
                },
                transport=self._transport,
            )
        return self._client

    async def fetch(self, url: str) -> str:
        """Fetch a URL with rate limiting; returns the body whatever the status."""
        await self._rate_limiter.wait()
        return await self._send_with_retry(url)

    async def _send(self, url: str) -> str:
        response = await self._get_client().get(url)
        if response.status_code != 200:
            logger.debug(f"Got HTTP {response.status_code} for {url}, keeping body")
        return response.text

    async def close(self) -> None:
        """Closes the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
