import asyncio

import pytest
from sqlalchemy import func, select

from speedwayrs.loader.resolver import EntityResolver
from speedwayrs.models import Player, Stadium, Team


@pytest.mark.asyncio
async def test_resolve_team_creates_once(session_maker):
    resolver = EntityResolver(session_maker)

    first = await resolver.resolve_team("Unia Leszno")
    second = await resolver.resolve_team("  Unia Leszno ")

    assert first == second
    async with session_maker() as session:
        count = await session.scalar(select(func.count()).select_from(Team))
    assert count == 1


@pytest.mark.asyncio
async def test_concurrent_resolution_shares_one_row(session_maker):
    resolver = EntityResolver(session_maker)

    ids = await asyncio.gather(*[resolver.resolve_team("Unia Leszno") for _ in range(5)])

    assert len(set(ids)) == 1
    async with session_maker() as session:
        names = (await session.execute(select(Team.team_name))).scalars().all()
    assert names == ["Unia Leszno"]


@pytest.mark.asyncio
async def test_resolve_rereads_after_conflict(session_maker, monkeypatch):
    """A lost insert race falls back to the row the other loader created."""
    resolver = EntityResolver(session_maker)
    existing = await resolver.resolve_stadium("Stadion Olimpijski, Wrocław")

    original = resolver._select_id
    calls = 0

    async def miss_first(*args, **kwargs):
        nonlocal calls
        calls += 1
        if calls == 1:
            return None
        return await original(*args, **kwargs)

    monkeypatch.setattr(resolver, "_select_id", miss_first)

    assert await resolver.resolve_stadium("Stadion Olimpijski, Wrocław") == existing
    assert calls == 2
    async with session_maker() as session:
        count = await session.scalar(select(func.count()).select_from(Stadium))
    assert count == 1


@pytest.mark.asyncio
async def test_resolve_player_by_name_and_surname(session_maker):
    resolver = EntityResolver(session_maker)

    dudek = await resolver.resolve_player("Patryk", "Dudek")
    other = await resolver.resolve_player("Patryk", "Malitowski")

    assert dudek != other
    assert await resolver.resolve_player("Patryk", "Dudek") == dudek
    async with session_maker() as session:
        row = await session.get(Player, dudek)
    assert (row.name, row.sname) == ("Patryk", "Dudek")
