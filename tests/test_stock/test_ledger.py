"""Tests for movement recording and pagination."""

from datetime import UTC, datetime, timedelta

import pytest

from inventory_engine.exceptions import InsufficientStock, ProductNotFound
from inventory_engine.models.inventory import InventoryRecord, MovementType
from inventory_engine.state.repository import InventoryRepository
from inventory_engine.stock import operations
from inventory_engine.stock.ledger import MovementLedger, paginate_movements

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
TTL = timedelta(minutes=30)


@pytest.fixture
def record() -> InventoryRecord:
    return InventoryRecord(product_id="p1", seller_id="s1", total_stock=10, low_stock_threshold=5)


def test_each_transition_appends_one_movement(record: InventoryRecord) -> None:
    operations.reserve(record, "orderA", "c1", 3, TTL, now=NOW)
    operations.confirm(record, "orderA", now=NOW)
    operations.reserve(record, "orderB", "c1", 2, TTL, now=NOW)
    operations.release(record, "orderB", "Order cancelled", now=NOW)
    operations.add_stock(record, 5, now=NOW)
    operations.adjust_stock(record, 12, now=NOW)
    operations.process_return(record, "orderA", 1, now=NOW)

    assert [m.movement_type for m in record.movements] == [
        MovementType.RESERVED,
        MovementType.SOLD,
        MovementType.RESERVED,
        MovementType.RELEASED,
        MovementType.IN,
        MovementType.ADJUSTED,
        MovementType.RETURNED,
    ]


def test_movement_counter_snapshots(record: InventoryRecord) -> None:
    operations.reserve(record, "orderA", "c1", 3, TTL, now=NOW)
    operations.confirm(record, "orderA", now=NOW)
    operations.adjust_stock(record, 7, now=NOW)

    reserved, sold, adjusted = record.movements

    assert (reserved.quantity, reserved.previous_stock, reserved.new_stock) == (-3, 0, 3)
    assert (sold.quantity, sold.previous_stock, sold.new_stock) == (-3, 0, 3)
    assert (adjusted.quantity, adjusted.previous_stock, adjusted.new_stock) == (-3, 10, 7)


def test_failed_transition_appends_nothing(record: InventoryRecord) -> None:
    with pytest.raises(InsufficientStock):
        operations.reserve(record, "orderA", "c1", 11, TTL, now=NOW)

    assert record.movements == []


def test_paginate_newest_first(record: InventoryRecord) -> None:
    for minute in range(5):
        operations.add_stock(record, 1, now=NOW + timedelta(minutes=minute))

    page = paginate_movements(record, page=1, limit=2)

    assert page.pagination.total == 5
    assert page.pagination.pages == 3
    assert [m.new_stock for m in page.movements] == [15, 14]
    assert page.current_stock.total_stock == 15


def test_paginate_keeps_append_order_for_equal_timestamps(record: InventoryRecord) -> None:
    operations.add_stock(record, 1, now=NOW)
    operations.add_stock(record, 1, now=NOW)

    page = paginate_movements(record)

    assert [m.new_stock for m in page.movements] == [12, 11]


def test_paginate_filters_by_type(record: InventoryRecord) -> None:
    operations.reserve(record, "orderA", "c1", 2, TTL, now=NOW)
    operations.add_stock(record, 4, now=NOW)

    reserved_only = paginate_movements(record, MovementType.RESERVED)
    everything = paginate_movements(record, "all")

    assert [m.movement_type for m in reserved_only.movements] == [MovementType.RESERVED]
    assert everything.pagination.total == 2


@pytest.mark.asyncio
async def test_ledger_list_unknown_product(repository: InventoryRepository) -> None:
    ledger = MovementLedger(repository)

    with pytest.raises(ProductNotFound):
        await ledger.list("missing")
