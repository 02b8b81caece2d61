import asyncio

import pytest

from speedwayrs.scraper.workers import ScrapeResult, WorkerPool


def test_worker_pool_requires_a_worker():
    with pytest.raises(ValueError):
        WorkerPool(max_workers=0)


@pytest.mark.asyncio
async def test_worker_pool_limits_parallelism():
    pool = WorkerPool(max_workers=2)
    running = 0
    peak = 0

    async def task(item):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return item * 2

    results = await pool.run(list(range(6)), task)

    assert results == [0, 2, 4, 6, 8, 10]
    assert peak == 2


@pytest.mark.asyncio
async def test_worker_pool_returns_exceptions():
    pool = WorkerPool(max_workers=3)

    async def task(item):
        if item == 1:
            raise RuntimeError("boom")
        return item

    results = await pool.run([0, 1, 2], task)

    assert results[0] == 0
    assert isinstance(results[1], RuntimeError)
    assert results[2] == 2


def test_scrape_result_ok(game_info):
    assert ScrapeResult(url="u", game=game_info).ok
    assert not ScrapeResult(url="u", error=RuntimeError("x")).ok
