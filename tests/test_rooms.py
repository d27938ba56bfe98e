"""Tests for the live room registry."""

import pytest

from conftest import PARKED, StubChat, generative, make_discussion, scripted
from roundtable.rooms import RoomRegistry


@pytest.fixture
def rooms(store, rng):
    return RoomRegistry(store, StubChat(), PARKED, rng)


async def test_open_unknown_discussion(rooms):
    with pytest.raises(KeyError):
        rooms.open("nope")


async def test_open_loads_and_starts(store, rooms):
    store.create_discussion(make_discussion([scripted("a")]))
    room = rooms.open("d1")
    assert rooms.get("d1") is room
    assert len(room.log) == 1
    assert room.running
    await rooms.close_all()
    assert rooms.get("d1") is None


async def test_reopen_keeps_in_memory_log(store, rooms, monkeypatch):
    store.create_discussion(make_discussion([scripted("a"), generative("g")]))
    room = rooms.open("d1")

    def broken(*args):
        raise OSError("disk full")

    monkeypatch.setattr(store, "append_turn", broken)
    room.send("Only in memory")
    monkeypatch.undo()
    assert len(store.load_log("d1")) == 1

    store.save_custom_character(generative("g", model="qwen2"))
    again = rooms.open("d1")
    assert again is room
    assert [t.text for t in again.log][-1] == "Only in memory"
    assert len(again.log) == 2
    assert again.roster[1].binding.model == "qwen2"
    assert again.running
    await rooms.close_all()
