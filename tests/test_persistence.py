"""Tests for in-memory and JSON kingdom persistence."""

import asyncio
import os
from datetime import datetime, timedelta, timezone

import pytest

from fablerealm.grid import create_grid, replace_tile
from fablerealm.persistence import InMemoryPersistence, JsonPersistence
from fablerealm.schemas import BuildingType, CityStats, KingdomProfile


def make_kingdom():
    grid = replace_tile(create_grid(4), 1, 2, building_type=BuildingType.MARKET_SQUARE, level=2)
    stats = CityStats(money=8123, population=57, day=31, time=14.3)
    return grid, stats


def make_profile(profile_id: str, minutes_ago: int) -> KingdomProfile:
    grid, stats = make_kingdom()
    return KingdomProfile(
        id=profile_id,
        name=profile_id.title(),
        last_played=datetime(2160, 1, 1, tzinfo=timezone.utc) - timedelta(minutes=minutes_ago),
        stats=stats,
        grid=grid,
    )


@pytest.mark.asyncio
async def test_in_memory_persistence_round_trip():
    persistence = InMemoryPersistence()
    await persistence.initialize()

    grid, stats = make_kingdom()
    await persistence.save(grid, stats, "aurelia", play_time=42.0)

    profile = await persistence.load("aurelia")
    assert profile is not None
    assert profile.grid == grid
    assert profile.stats == stats
    assert profile.play_time == 42.0
    assert persistence.save_count == 1

    # "default" resolves through the active pointer
    assert await persistence.get_active_profile_id() == "aurelia"
    assert (await persistence.load()).id == "aurelia"

    assert await persistence.load("nowhere") is None
    await persistence.close()


@pytest.mark.asyncio
async def test_in_memory_list_and_delete():
    persistence = InMemoryPersistence()
    for profile_id, minutes_ago in (("old", 90), ("new", 1), ("mid", 30)):
        await persistence.save_profile(make_profile(profile_id, minutes_ago))
    await persistence.set_active_profile("mid")

    profiles = await persistence.list_profiles()
    assert [profile.id for profile in profiles] == ["new", "mid", "old"]

    await persistence.delete_profile("mid")
    assert await persistence.get_profile("mid") is None
    assert await persistence.get_active_profile_id() == "default"


@pytest.mark.asyncio
async def test_json_persistence_round_trip(tmp_path):
    persistence = JsonPersistence(tmp_path)
    await persistence.initialize()

    grid, stats = make_kingdom()
    await persistence.save(grid, stats, "aurelia", play_time=3.5)

    assert (tmp_path / "profiles" / "aurelia.json").exists()
    assert (tmp_path / "active_profile").read_text("utf-8") == "aurelia"

    reopened = JsonPersistence(tmp_path)
    profile = await reopened.load()
    assert profile is not None
    assert profile.id == "aurelia"
    assert profile.grid == grid
    assert profile.stats == stats
    assert profile.play_time == 3.5


@pytest.mark.asyncio
async def test_json_persistence_list_and_delete(tmp_path):
    persistence = JsonPersistence(tmp_path)
    await persistence.initialize()
    assert await persistence.list_profiles() == []
    assert await persistence.load() is None

    for profile_id, minutes_ago in (("old", 90), ("new", 1)):
        await persistence.save_profile(make_profile(profile_id, minutes_ago))
    await persistence.set_active_profile("old")

    assert [p.id for p in await persistence.list_profiles()] == ["new", "old"]

    await persistence.delete_profile("old")
    assert not (tmp_path / "profiles" / "old.json").exists()
    assert await persistence.get_active_profile_id() == "default"
    assert [p.id for p in await persistence.list_profiles()] == ["new"]


@pytest.mark.asyncio
async def test_json_overlapping_saves_leave_a_complete_file(tmp_path):
    persistence = JsonPersistence(tmp_path)
    await persistence.initialize()
    grid, stats = make_kingdom()

    await asyncio.gather(
        *(
            persistence.save(grid, stats.model_copy(update={"day": day}), "aurelia")
            for day in range(1, 9)
        )
    )

    profile = await persistence.get_profile("aurelia")
    assert profile is not None
    assert 1 <= profile.stats.day <= 8
    assert sorted(os.listdir(tmp_path / "profiles")) == ["aurelia.json"]


@pytest.mark.asyncio
async def test_json_failed_write_keeps_previous_profile(tmp_path, monkeypatch):
    persistence = JsonPersistence(tmp_path)
    await persistence.initialize()
    grid, stats = make_kingdom()
    await persistence.save(grid, stats, "aurelia")

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("fablerealm.persistence.os.replace", broken_replace)
    with pytest.raises(OSError):
        await persistence.save(grid, stats.model_copy(update={"day": 99}), "aurelia")

    profile = await persistence.get_profile("aurelia")
    assert profile is not None
    assert profile.stats.day == stats.day
    assert sorted(os.listdir(tmp_path / "profiles")) == ["aurelia.json"]
