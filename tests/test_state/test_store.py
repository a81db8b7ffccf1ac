"""Tests for the in-memory record store."""

from datetime import UTC, datetime, timedelta

import pytest

from inventory_engine.state.store import MemoryInventoryStore, RecordIndexes, VersionConflict

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_save_and_load_versions(memory_store: MemoryInventoryStore) -> None:
    version = await memory_store.save("p1", {"total_stock": 10}, 0, RecordIndexes("s1"))
    assert version == 1

    version = await memory_store.save("p1", {"total_stock": 12}, 1, RecordIndexes("s1"))
    stored = await memory_store.load("p1")

    assert version == 2
    assert stored.version == 2
    assert stored.data == {"total_stock": 12}


@pytest.mark.asyncio
async def test_stale_version_is_rejected(memory_store: MemoryInventoryStore) -> None:
    await memory_store.save("p1", {"total_stock": 10}, 0, RecordIndexes("s1"))

    with pytest.raises(VersionConflict) as exc_info:
        await memory_store.save("p1", {"total_stock": 5}, 0, RecordIndexes("s1"))

    assert exc_info.value.actual == 1
    assert (await memory_store.load("p1")).data == {"total_stock": 10}


@pytest.mark.asyncio
async def test_loaded_data_is_a_copy(memory_store: MemoryInventoryStore) -> None:
    await memory_store.save("p1", {"movements": []}, 0, RecordIndexes("s1"))

    stored = await memory_store.load("p1")
    stored.data["movements"].append("tampered")

    assert (await memory_store.load("p1")).data == {"movements": []}


@pytest.mark.asyncio
async def test_seller_index(memory_store: MemoryInventoryStore) -> None:
    await memory_store.save("p2", {}, 0, RecordIndexes("s1"))
    await memory_store.save("p1", {}, 0, RecordIndexes("s1"))
    await memory_store.save("p3", {}, 0, RecordIndexes("s2"))

    assert await memory_store.list_product_ids() == ["p1", "p2", "p3"]
    assert await memory_store.list_product_ids("s1") == ["p1", "p2"]
    assert await memory_store.list_product_ids("s3") == []


@pytest.mark.asyncio
async def test_expiry_index_orders_by_earliest_expiry(memory_store: MemoryInventoryStore) -> None:
    await memory_store.save("late", {}, 0, RecordIndexes("s1", next_expiry=NOW - timedelta(minutes=1)))
    await memory_store.save("early", {}, 0, RecordIndexes("s1", next_expiry=NOW - timedelta(minutes=5)))
    await memory_store.save("future", {}, 0, RecordIndexes("s1", next_expiry=NOW + timedelta(minutes=5)))
    await memory_store.save("boundary", {}, 0, RecordIndexes("s1", next_expiry=NOW))
    await memory_store.save("none", {}, 0, RecordIndexes("s1"))

    assert await memory_store.due_for_expiry(NOW) == ["early", "late"]


@pytest.mark.asyncio
async def test_order_index_follows_latest_save(memory_store: MemoryInventoryStore) -> None:
    await memory_store.save("p1", {}, 0, RecordIndexes("s1", active_orders={"o1", "o2"}))
    await memory_store.save("p2", {}, 0, RecordIndexes("s1", active_orders={"o1"}))
    await memory_store.save("p1", {}, 1, RecordIndexes("s1", active_orders={"o2"}))

    assert await memory_store.products_for_order("o1") == ["p2"]
    assert await memory_store.products_for_order("o2") == ["p1"]


@pytest.mark.asyncio
async def test_clear(memory_store: MemoryInventoryStore) -> None:
    await memory_store.save("p1", {}, 0, RecordIndexes("s1", active_orders={"o1"}))

    await memory_store.clear()

    assert await memory_store.load("p1") is None
    assert await memory_store.list_product_ids() == []
    assert await memory_store.products_for_order("o1") == []


def test_indexes_round_trip_through_dict() -> None:
    indexes = RecordIndexes("s1", is_active=False, next_expiry=NOW, active_orders={"b", "a"})

    data = indexes.to_dict()

    assert data["active_orders"] == ["a", "b"]
    assert RecordIndexes.from_dict(data) == indexes
