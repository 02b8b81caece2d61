"""Streaming reader for the scraper artifact.

The artifact is a run of JSON documents written back to back, with no array
brackets and no separators. Values are decoded one at a time from a growing
buffer so the whole file never has to be held in memory.
"""
import json
import logging
import re
from pathlib import Path
from typing import IO, Any, Iterator, Tuple

from pydantic import ValidationError

from speedwayrs.core.exceptions import ArtifactDecodeError
from speedwayrs.schemas.game import GameInfo

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

_decoder = json.JSONDecoder()
_LITERALS = ("true", "false", "null")
_PARTIAL_NUMBER_RE = re.compile(r"^-?\d*\.?\d*([eE][-+]?)?$")
_PARTIAL_ESCAPE_RE = re.compile(r"\\u[0-9a-fA-F]{0,3}$")


def _is_truncated(buffer: str, error: json.JSONDecodeError) -> bool:
    """True when decoding stopped only because the input ran out."""
    if error.msg.startswith("Unterminated string"):
        return True
    if error.msg.startswith("Invalid \\uXXXX escape"):
        return _PARTIAL_ESCAPE_RE.search(buffer.rstrip()) is not None
    tail = buffer[error.pos:].strip()
    if not tail.strip(",:"):
        return True
    return any(literal.startswith(tail) for literal in _LITERALS) or _PARTIAL_NUMBER_RE.match(tail) is not None


def iter_json_values(stream: IO[str], chunk_size: int = CHUNK_SIZE) -> Iterator[Tuple[int, Any]]:
    """Yield ``(offset, value)`` for each JSON value in the stream.

    A value cut off by the end of the stream ends iteration quietly. Any other
    malformed input raises ``ArtifactDecodeError``.
    """
    buffer = ""
    offset = 0  # position of buffer[0] in the stream
    eof = False

    while True:
        stripped = buffer.lstrip()
        offset += len(buffer) - len(stripped)
        buffer = stripped

        if not buffer:
            if eof:
                return
            chunk = stream.read(chunk_size)
            eof = not chunk
            buffer += chunk
            continue

        try:
            value, end = _decoder.raw_decode(buffer)
        except json.JSONDecodeError as e:
            if not eof:
                chunk = stream.read(chunk_size)
                eof = not chunk
                buffer += chunk
                continue
            if _is_truncated(buffer, e):
                logger.warning(f"Ignoring truncated value at the end of the artifact (offset {offset})")
                return
            raise ArtifactDecodeError(f"Malformed JSON: {e.msg}", offset + e.pos) from e

        yield offset, value
        buffer = buffer[end:]
        offset += end


def iter_game_infos(path: Path, chunk_size: int = CHUNK_SIZE) -> Iterator[GameInfo]:
    """Yield every ``GameInfo`` stored in a scraper artifact."""
    with open(path, "r", encoding="utf-8") as stream:
        for offset, value in iter_json_values(stream, chunk_size):
            try:
                yield GameInfo.model_validate(value)
            except ValidationError as e:
                raise ArtifactDecodeError(f"Value is not a GameInfo: {e}", offset) from e
