"""Tests for the inventory repository and its mutation path."""

import asyncio
from datetime import timedelta

import pytest

from inventory_engine.exceptions import ConcurrencyConflict, InsufficientStock, ProductNotFound
from inventory_engine.models.inventory import InventoryRecord
from inventory_engine.state.locks import KeyedLock
from inventory_engine.state.repository import InventoryRepository
from inventory_engine.state.store import MemoryInventoryStore
from inventory_engine.stock import operations

TTL = timedelta(minutes=30)


class InterferingStore(MemoryInventoryStore):
    """Store where another writer bumps the record right before each save."""

    def __init__(self, interferences: int):
        super().__init__()
        self.interferences = interferences

    async def save(self, product_id, data, expected_version, indexes):
        current = self._records.get(product_id)
        if self.interferences > 0 and current is not None:
            self.interferences -= 1
            foreign = dict(current.data, total_stock=current.data["total_stock"] + 10)
            await super().save(product_id, foreign, current.version, indexes)
        return await super().save(product_id, data, expected_version, indexes)


def new_record(total: int = 10) -> InventoryRecord:
    return InventoryRecord(product_id="p1", seller_id="s1", total_stock=total, low_stock_threshold=5)


@pytest.mark.asyncio
async def test_create_is_idempotent(repository: InventoryRepository) -> None:
    record, created = await repository.create(new_record())
    again, created_again = await repository.create(new_record(total=99))

    assert created is True
    assert created_again is False
    assert again.total_stock == record.total_stock == 10


@pytest.mark.asyncio
async def test_concurrent_create_provisions_once(repository: InventoryRepository) -> None:
    results = await asyncio.gather(*(repository.create(new_record()) for _ in range(5)))

    assert sum(created for _, created in results) == 1


@pytest.mark.asyncio
async def test_mutate_persists_result(repository: InventoryRepository) -> None:
    await repository.create(new_record())

    record, movement = await repository.mutate("p1", lambda r: operations.add_stock(r, 5))

    assert movement.new_stock == 15
    assert (await repository.get("p1")).total_stock == record.total_stock == 15


@pytest.mark.asyncio
async def test_mutate_missing_record(repository: InventoryRepository) -> None:
    with pytest.raises(ProductNotFound, match="Inventory not found"):
        await repository.mutate("p1", lambda r: None)


@pytest.mark.asyncio
async def test_failed_operation_writes_nothing(
    repository: InventoryRepository,
    memory_store: MemoryInventoryStore,
) -> None:
    await repository.create(new_record())
    version = (await memory_store.load("p1")).version

    with pytest.raises(InsufficientStock):
        await repository.mutate(
            "p1", lambda r: operations.reserve(r, "o1", "c1", 50, ttl=TTL)
        )

    assert (await memory_store.load("p1")).version == version


@pytest.mark.asyncio
async def test_mutate_retries_on_version_conflict() -> None:
    store = InterferingStore(interferences=1)
    repository = InventoryRepository(store, max_retries=3)
    await repository.create(new_record())

    applied = 0

    def restock(record: InventoryRecord):
        nonlocal applied
        applied += 1
        return operations.add_stock(record, 5)

    record, _ = await repository.mutate("p1", restock)

    # Reapplied on top of the other writer's change
    assert applied == 2
    assert record.total_stock == 25
    assert (await repository.get("p1")).total_stock == 25


@pytest.mark.asyncio
async def test_mutate_gives_up_after_max_retries() -> None:
    store = InterferingStore(interferences=100)
    repository = InventoryRepository(store, max_retries=3)
    await repository.create(new_record())

    with pytest.raises(ConcurrencyConflict) as exc_info:
        await repository.mutate("p1", lambda r: operations.add_stock(r, 5))

    assert exc_info.value.attempts == 3


@pytest.mark.asyncio
async def test_index_entries_follow_record(
    repository: InventoryRepository,
    memory_store: MemoryInventoryStore,
) -> None:
    await repository.create(new_record())
    _, reservation = await repository.mutate(
        "p1", lambda r: operations.reserve(r, "o1", "c1", 2, ttl=TTL)
    )

    assert await repository.products_for_order("o1") == ["p1"]
    assert await repository.due_for_expiry(reservation.expires_at + TTL) == ["p1"]

    await repository.mutate("p1", lambda r: operations.release(r, "o1"))

    assert await repository.products_for_order("o1") == []
    assert await repository.due_for_expiry(reservation.expires_at + TTL) == []


@pytest.mark.asyncio
async def test_list_records_by_seller(repository: InventoryRepository) -> None:
    await repository.create(new_record())
    await repository.create(InventoryRecord(product_id="p2", seller_id="s2", total_stock=3))

    assert [r.product_id for r in await repository.list_records()] == ["p1", "p2"]
    assert [r.product_id for r in await repository.list_records("s2")] == ["p2"]


@pytest.mark.asyncio
async def test_keyed_lock_serializes_same_key() -> None:
    locks = KeyedLock()
    order: list[str] = []

    async def worker(name: str, key: str) -> None:
        async with locks.acquire(key):
            order.append(f"{name}-start")
            await asyncio.sleep(0.01)
            order.append(f"{name}-end")

    await asyncio.gather(worker("a", "p1"), worker("b", "p1"))

    assert order == ["a-start", "a-end", "b-start", "b-end"]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_keyed_lock_independent_keys() -> None:
    locks = KeyedLock()

    async with locks.acquire("p1"):
        assert locks.locked("p1") is True
        assert locks.locked("p2") is False

        async with locks.acquire("p2"):
            assert len(locks) == 2

    assert len(locks) == 0
