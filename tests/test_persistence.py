"""Tests for achievemate/store.py and achievemate/persistence.py."""

import asyncio
import json

import pytest

from achievemate.persistence import PersistentField
from achievemate.store import FileStore, MemoryStore


class BrokenStore:
    async def get(self, key):
        raise OSError("store unavailable")

    async def set(self, key, value):
        raise OSError("store unavailable")


def test_memory_store_round_trip():
    async def scenario():
        store = MemoryStore()
        assert await store.get("streak") is None
        await store.set("streak", "4")
        return await store.get("streak")

    assert asyncio.run(scenario()) == "4"


def test_store_rejects_bad_keys(tmp_path):
    with pytest.raises(ValueError):
        asyncio.run(MemoryStore().get("../etc/passwd"))
    with pytest.raises(ValueError):
        FileStore(tmp_path).path_for("a/b")


def test_file_store_round_trip(tmp_path):
    async def scenario():
        store = FileStore(tmp_path / "data")
        assert await store.get("goals") is None
        await store.set("goals", "[]")
        return await store.get("goals")

    assert asyncio.run(scenario()) == "[]"
    assert (tmp_path / "data" / "goals.json").read_text(encoding="utf-8") == "[]"


def test_load_missing_key_yields_default():
    field = PersistentField(MemoryStore(), "playlists", [])
    assert asyncio.run(field.load()) == []


def test_load_malformed_document_yields_default():
    field = PersistentField(MemoryStore({"streak": "{not json"}), "streak", 0)
    assert asyncio.run(field.load()) == 0
    assert field.value == 0


def test_load_decode_failure_yields_default():
    def decode(raw):
        raise ValueError("bad shape")

    field = PersistentField(MemoryStore({"goals": "{}"}), "goals", [], decode=decode)
    assert asyncio.run(field.load()) == []


def test_load_store_failure_yields_default():
    field = PersistentField(BrokenStore(), "streak", 0)
    assert asyncio.run(field.load()) == 0


def test_load_existing_value():
    field = PersistentField(MemoryStore({"streak": "12"}), "streak", 0)
    assert asyncio.run(field.load()) == 12


def test_set_writes_behind_on_running_loop():
    store = MemoryStore()

    async def scenario():
        field = PersistentField(store, "streak", 0)
        task = field.set(5)
        assert field.value == 5
        assert task is not None
        await task

    asyncio.run(scenario())
    assert store.data["streak"] == "5"


def test_set_without_loop_defers_to_flush():
    store = MemoryStore()
    field = PersistentField(store, "streak", 0)
    assert field.set(2) is None
    assert "streak" not in store.data
    asyncio.run(field.flush())
    assert store.data["streak"] == "2"
    assert not field.dirty


def test_flush_leaves_last_value_durable():
    store = MemoryStore()

    async def scenario():
        field = PersistentField(store, "streak", 0)
        for n in range(1, 6):
            field.set(n)
        await field.flush()

    asyncio.run(scenario())
    assert store.data["streak"] == "5"


def test_background_save_failure_is_not_raised():
    async def scenario():
        field = PersistentField(BrokenStore(), "streak", 0)
        await field.set(1)
        return field

    field = asyncio.run(scenario())
    assert field.value == 1
    assert field.dirty


def test_encode_and_decode_hooks():
    store = MemoryStore()
    field = PersistentField(
        store, "goals", [],
        decode=lambda raw: [item["title"] for item in raw],
        encode=lambda titles: [{"title": t} for t in titles],
    )
    asyncio.run(field.save(["Read"]))
    assert json.loads(store.data["goals"]) == [{"title": "Read"}]
    assert asyncio.run(field.load()) == ["Read"]


def test_slots_are_independent():
    """No cross-slot transaction: a lost write leaves slots out of step.

    The playlist write lands but the streak write never does (as after a
    crash between the two); reloading shows the completed video without its
    streak increment. That inconsistency is accepted, not repaired.
    """
    store = MemoryStore()

    async def crash_before_streak_write():
        streak = PersistentField(store, "streak", 0)
        await streak.load()
        await PersistentField(store, "playlists", []).save([{"id": "p", "progress": 100}])

    async def reload():
        playlists = await PersistentField(store, "playlists", []).load()
        streak = await PersistentField(store, "streak", 0).load()
        return playlists, streak

    asyncio.run(crash_before_streak_write())
    playlists, streak = asyncio.run(reload())
    assert playlists == [{"id": "p", "progress": 100}]
    assert streak == 0
