"""Test base scraper infrastructure."""
import time

import httpx
import pytest


@pytest.mark.asyncio
async def test_rate_limiter_enforces_delay():
    """RateLimiter should enforce minimum delay between calls."""
    from speedwayrs.scraper.base.rate_limiter import RateLimiter

    limiter = RateLimiter(tick_interval=0.1)

    start = time.monotonic()
    await limiter.wait()
    await limiter.wait()
    elapsed = time.monotonic() - start

    # Second call should have waited ~100ms
    assert elapsed >= 0.09  # Allow small timing variance


@pytest.mark.asyncio
async def test_rate_limiter_first_call_is_immediate():
    from speedwayrs.scraper.base.rate_limiter import RateLimiter

    limiter = RateLimiter.from_milliseconds(500)
    assert limiter.tick_interval == 0.5

    start = time.monotonic()
    await limiter.wait()
    assert time.monotonic() - start < 0.1


@pytest.mark.asyncio
async def test_shared_limiter_spaces_concurrent_fetches():
    """K concurrent fetches through one limiter take at least (K-1) ticks."""
    import asyncio
    from speedwayrs.scraper.base import BaseScraper, RateLimiter

    starts = []

    def handler(request: httpx.Request) -> httpx.Response:
        starts.append(time.monotonic())
        return httpx.Response(200, text="<html></html>")

    limiter = RateLimiter(tick_interval=0.05)
    scrapers = [
        BaseScraper(rate_limiter=limiter, transport=httpx.MockTransport(handler))
        for _ in range(2)
    ]

    start = time.monotonic()
    await asyncio.gather(*[
        scrapers[i % 2].fetch(f"https://example.com/{i}") for i in range(5)
    ])
    elapsed = time.monotonic() - start

    assert len(starts) == 5
    assert elapsed >= 4 * 0.05 * 0.9
    gaps = [b - a for a, b in zip(starts, starts[1:])]
    assert all(gap >= 0.04 for gap in gaps)

    for scraper in scrapers:
        await scraper.close()


@pytest.mark.asyncio
async def test_fetch_returns_body_for_error_status():
    from speedwayrs.scraper.base import BaseScraper, RateLimiter

    transport = httpx.MockTransport(lambda request: httpx.Response(404, text="not here"))
    scraper = BaseScraper(rate_limiter=RateLimiter(0), transport=transport)
    try:
        assert await scraper.fetch("https://example.com/missing") == "not here"
    finally:
        await scraper.close()


@pytest.mark.asyncio
async def test_fetch_retries_connect_errors():
    from speedwayrs.scraper.base import BaseScraper, RateLimiter

    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, text="ok")

    scraper = BaseScraper(
        rate_limiter=RateLimiter(0),
        connect_retry_delay=0.01,
        transport=httpx.MockTransport(handler),
    )
    try:
        assert await scraper.fetch("https://example.com/") == "ok"
    finally:
        await scraper.close()
    assert calls == 3


@pytest.mark.asyncio
async def test_fetch_does_not_retry_other_transport_errors():
    from speedwayrs.scraper.base import BaseScraper, RateLimiter

    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ReadTimeout("too slow", request=request)

    scraper = BaseScraper(rate_limiter=RateLimiter(0), transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(httpx.ReadTimeout):
            await scraper.fetch("https://example.com/")
    finally:
        await scraper.close()
    assert calls == 1


@pytest.mark.asyncio
async def test_retry_succeeds_after_failures():
    """Retry decorator should retry on failure and succeed."""
    from speedwayrs.scraper.base.retry import with_retry

    call_count = 0

    @with_retry(max_attempts=3, base_delay=0.01)
    async def flaky_function():
        nonlocal call_count
        call_count += 1
        if call_count < 3:
            raise ConnectionError("Temporary failure")
        return "success"

    result = await flaky_function()
    assert result == "success"
    assert call_count == 3


@pytest.mark.asyncio
async def test_retry_raises_after_max_attempts():
    """Retry decorator should raise after max attempts exceeded."""
    from speedwayrs.scraper.base.retry import with_retry

    @with_retry(max_attempts=2, base_delay=0.01)
    async def always_fails():
        raise ConnectionError("Always fails")

    with pytest.raises(ConnectionError):
        await always_fails()


@pytest.mark.asyncio
async def test_retry_ignores_unlisted_exceptions():
    from speedwayrs.scraper.base.retry import with_retry

    call_count = 0

    @with_retry(max_attempts=None, base_delay=0.01, exceptions=(ConnectionError,))
    async def broken():
        nonlocal call_count
        call_count += 1
        raise ValueError("not retried")

    with pytest.raises(ValueError):
        await broken()
    assert call_count == 1
