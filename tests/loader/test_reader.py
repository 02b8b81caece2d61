import io

import pytest

from speedwayrs.core.exceptions import ArtifactDecodeError
from speedwayrs.loader.reader import iter_game_infos, iter_json_values


def _values(text, chunk_size=4):
    return [value for _, value in iter_json_values(io.StringIO(text), chunk_size)]


def test_values_back_to_back_and_whitespace():
    assert _values('{"a": 1}{"b": [1, 2]}\n\n  {"c": "x"}  ') == [{"a": 1}, {"b": [1, 2]}, {"c": "x"}]


def test_values_report_offsets():
    offsets = [offset for offset, _ in iter_json_values(io.StringIO('{"a":1}  {"b":2}'), 3)]
    assert offsets == [0, 9]


def test_empty_stream():
    assert _values("") == []
    assert _values("   \n") == []


@pytest.mark.parametrize("tail", [
    '{"a": ',
    '{"a": "unfinished',
    '{"a": [1, 2',
    '{"a": tr',
    '{"a": 12',
    '{"a": -',
    '{"a": 1.',
    '{"a": 1e',
    '{"a": "\\u00',
])
def test_truncated_tail_ends_stream(tail):
    assert _values('{"ok": true}' + tail) == [{"ok": True}]


def test_garbage_between_values_is_an_error():
    with pytest.raises(ArtifactDecodeError) as exc:
        _values('{"a": 1} nonsense {"b": 2}')
    assert exc.value.offset == 9


def test_game_infos_from_artifact(tmp_path, game_info):
    path = tmp_path / "scraping_result.json"
    body = game_info.model_dump_json(indent=2)
    path.write_text(body + body + body[: len(body) // 2], encoding="utf-8")

    games = list(iter_game_infos(path, chunk_size=1024))

    assert games == [game_info, game_info]


def test_game_infos_rejects_other_documents(tmp_path, game_info):
    path = tmp_path / "scraping_result.json"
    path.write_text(game_info.model_dump_json() + '{"team1": "nope"}', encoding="utf-8")

    reader = iter_game_infos(path)
    assert next(reader) == game_info
    with pytest.raises(ArtifactDecodeError):
        next(reader)


def test_invalid_escape_inside_stream_is_an_error():
    with pytest.raises(ArtifactDecodeError):
        _values('{"a": "\\u00zz"}{"b": 2}')
