from __future__ import annotations

import pytest

from request_client.cache import MISSING, MemoryCacheStore


@pytest.mark.asyncio
async def test_memory_store_honours_per_entry_ttl(clock) -> None:
    store = MemoryCacheStore(timer=clock)
    await store.set("short", "s", 5)
    await store.set("long", "l", 50)
    assert await store.get("short") == "s"
    clock.now += 6
    assert await store.get("short") is MISSING
    assert await store.get("long") == "l"


@pytest.mark.asyncio
async def test_memory_store_copies_values(clock) -> None:
    store = MemoryCacheStore(timer=clock)
    original = {"items": [1]}
    await store.set("k", original, 5)
    original["items"].append(2)
    hit = await store.get("k")
    hit["items"].append(3)
    assert await store.get("k") == {"items": [1]}


@pytest.mark.asyncio
async def test_memory_store_delete_is_idempotent(clock) -> None:
    store = MemoryCacheStore(timer=clock)
    await store.set("k", None, 5)
    assert await store.get("k") is None
    await store.delete("k")
    await store.delete("k")
    assert await store.get("k") is MISSING
