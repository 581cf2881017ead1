# tests/unit/memory/test_stores.py
"""Tests for memory backends and the memory factory."""

from __future__ import annotations

import pytest

from speechwright.config.settings import Settings
from speechwright.core.errors import StoreError
from speechwright.core.models import Identity
from speechwright.memory.json_store import JsonMemoryStore
from speechwright.memory.memory_factory import create_memory_store
from speechwright.memory.models import TraitDelta
from speechwright.memory.sqlite_store import SqliteMemoryStore

USER = Identity(user_id="42")
DELTA = TraitDelta(roles=["founder"], tone_preferences=["clear"])


@pytest.fixture(params=["json", "sqlite"])
def store(request, tmp_data_root):
    if request.param == "json":
        yield JsonMemoryStore(tmp_data_root / "memory")
    else:
        s = SqliteMemoryStore(tmp_data_root / "mem.db")
        yield s
        s.close()


class TestMemoryStores:
    @pytest.mark.asyncio
    async def test_missing_profile(self, store):
        assert await store.load_traits(USER) is None

    @pytest.mark.asyncio
    async def test_merge_then_load(self, store):
        await store.merge_traits(USER, DELTA)
        await store.merge_traits(USER, TraitDelta(domains=["startup"]))
        profile = await store.load_traits(USER)
        assert profile.identity == "user:42"
        assert profile.roles == ["founder"]
        assert profile.domains == ["startup"]
        assert profile.runs_count == 2

    @pytest.mark.asyncio
    async def test_identities_isolated(self, store):
        await store.merge_traits(USER, DELTA)
        assert await store.load_traits(Identity(anon_id="42")) is None

    @pytest.mark.asyncio
    async def test_empty_delta_not_written(self, store):
        assert await store.merge_traits(USER, TraitDelta()) is None
        assert await store.load_traits(USER) is None

    @pytest.mark.asyncio
    async def test_unset_identity(self, store):
        assert await store.merge_traits(Identity(), DELTA) is None
        assert await store.load_traits(Identity()) is None


class TestJsonMemoryStore:
    @pytest.mark.asyncio
    async def test_corrupt_file(self, tmp_data_root):
        store = JsonMemoryStore(tmp_data_root)
        (tmp_data_root / "user_42.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            await store.load_traits(USER)

    def test_close_is_noop(self, tmp_data_root):
        store = JsonMemoryStore(tmp_data_root)
        store.close()


class TestCreateMemoryStore:
    def test_disabled(self):
        assert create_memory_store(Settings(_env_file=None)) is None
        assert create_memory_store(None) is None

    def test_json(self, tmp_data_root):
        settings = Settings(_env_file=None, memory_backend="json", data_root=tmp_data_root)
        assert isinstance(create_memory_store(settings), JsonMemoryStore)
        assert (tmp_data_root / "memory").is_dir()

    def test_sqlite(self, tmp_data_root):
        settings = Settings(_env_file=None, memory_backend="sqlite", data_root=tmp_data_root)
        store = create_memory_store(settings)
        assert isinstance(store, SqliteMemoryStore)
        store.close()
