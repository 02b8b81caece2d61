import asyncio

import pytest

from speedwayrs.scraper.sink import ResultSink
from speedwayrs.scraper.workers import ScrapeResult


@pytest.mark.asyncio
async def test_sink_writes_games_back_to_back(tmp_path, game_info):
    from speedwayrs.loader.reader import iter_game_infos

    path = tmp_path / "out.json"
    sink = ResultSink(path)
    sink.open()

    queue = asyncio.Queue()
    await queue.put(ScrapeResult(url="a", game=game_info))
    await queue.put(ScrapeResult(url="b", error=RuntimeError("Unable to find heat list.")))
    await queue.put(ScrapeResult(url="c", game=game_info))
    await queue.put(None)

    await sink.run(queue)

    assert sink.written == 2
    assert sink.failed == 1
    text = path.read_text(encoding="utf-8")
    assert text.startswith("{")
    assert "}{" in text
    assert list(iter_game_infos(path)) == [game_info, game_info]


@pytest.mark.asyncio
async def test_sink_truncates_existing_file(tmp_path):
    path = tmp_path / "out.json"
    path.write_text("old content", encoding="utf-8")

    sink = ResultSink(path)
    queue = asyncio.Queue()
    await queue.put(None)
    await sink.run(queue)

    assert path.read_text(encoding="utf-8") == ""


def test_sink_open_fails_for_missing_folder(tmp_path):
    sink = ResultSink(tmp_path / "missing" / "out.json")
    with pytest.raises(OSError):
        sink.open()


class FailingFirstWrite:
    """File wrapper whose first write fails like a full disk."""

    def __init__(self, inner):
        self._inner = inner
        self.failed_writes = 0

    def write(self, text):
        if self.failed_writes == 0:
            self.failed_writes += 1
            raise OSError("No space left on device")
        return self._inner.write(text)

    def flush(self):
        self._inner.flush()

    def close(self):
        self._inner.close()

    @property
    def closed(self):
        return self._inner.closed


@pytest.mark.asyncio
async def test_sink_keeps_draining_after_write_error(tmp_path, game_info):
    from speedwayrs.loader.reader import iter_game_infos

    path = tmp_path / "out.json"
    sink = ResultSink(path)
    sink.open()
    flaky = FailingFirstWrite(sink._file)
    sink._file = flaky

    queue = asyncio.Queue()
    await queue.put(ScrapeResult(url="a", game=game_info))
    await queue.put(ScrapeResult(url="b", game=game_info))
    await queue.put(None)

    await sink.run(queue)

    assert flaky.failed_writes == 1
    assert sink.written == 1
    assert sink.failed == 0
    assert flaky.closed
    assert list(iter_game_infos(path)) == [game_info]
