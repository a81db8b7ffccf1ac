"""Tests for multi-item reservation orchestration."""

import asyncio

import pytest

from inventory_engine.exceptions import InvalidQuantity, PartialReservationFailure
from inventory_engine.models.results import OrderItem
from inventory_engine.state.repository import InventoryRepository
from inventory_engine.state.store import MemoryInventoryStore
from inventory_engine.stock.orchestrator import ROLLBACK_REASON, ReservationOrchestrator
from inventory_engine.stock.reservations import ReservationManager


@pytest.mark.asyncio
async def test_reserve_many_success(
    orchestrator: ReservationOrchestrator,
    manager: ReservationManager,
) -> None:
    result = await orchestrator.reserve_many(
        "orderX",
        "c1",
        [{"product_id": "p1", "quantity": 2}, OrderItem(product_id="p3", quantity=5)],
    )

    assert result.success is True
    assert [o.product_id for o in result.successful] == ["p1", "p3"]
    assert result.failed == []
    assert result.ttl_minutes == 30
    assert result.successful[0].result["available_stock"] == 8
    assert (await manager.get_stock_summary("p3")).reserved_stock == 5


@pytest.mark.asyncio
async def test_reserve_many_rolls_back_on_failure(
    orchestrator: ReservationOrchestrator,
    manager: ReservationManager,
) -> None:
    await manager.ensure_record("p1")
    before = await manager.get_stock_summary("p1")

    result = await orchestrator.reserve_many(
        "orderX",
        "c1",
        [{"product_id": "p1", "quantity": 5}, {"product_id": "p2", "quantity": 1000}],
    )

    assert result.success is False
    assert result.failed[0].product_id == "p2"
    assert result.failed[0].error_type == "InsufficientStock"
    assert result.successful[0].compensated is True

    after = await manager.get_stock_summary("p1")
    assert after.reserved_stock == before.reserved_stock
    assert after.available_stock == before.available_stock

    page = await manager.get_movements("p1", "released")
    assert page.movements[0].reason == ROLLBACK_REASON


@pytest.mark.asyncio
async def test_reserve_many_skips_items_after_failure(
    orchestrator: ReservationOrchestrator,
    repository: InventoryRepository,
) -> None:
    result = await orchestrator.reserve_many(
        "orderX",
        "c1",
        [
            {"product_id": "p1", "quantity": 1},
            {"product_id": "missing", "quantity": 1},
            {"product_id": "p3", "quantity": 1},
        ],
    )

    assert result.success is False
    assert result.failed[0].error_type == "ProductNotFound"
    assert [item.product_id for item in result.skipped] == ["p3"]
    assert await repository.get("p3") is None


@pytest.mark.asyncio
async def test_reserve_many_reports_malformed_items(
    orchestrator: ReservationOrchestrator,
    repository: InventoryRepository,
) -> None:
    result = await orchestrator.reserve_many(
        "orderX",
        "c1",
        [{"product_id": "p1", "quantity": 2}, {"product_id": "p3", "quantity": 0}],
    )

    assert result.success is False
    assert result.successful == []
    assert [o.product_id for o in result.failed] == ["p3"]
    assert result.failed[0].quantity == 0
    assert result.failed[0].error_type == "InvalidQuantity"
    assert [item.product_id for item in result.skipped] == ["p1"]
    assert await repository.get("p1") is None

    with pytest.raises(PartialReservationFailure):
        result.raise_for_failure()


@pytest.mark.asyncio
async def test_reserve_many_rejects_non_positive_ttl(
    orchestrator: ReservationOrchestrator,
    repository: InventoryRepository,
) -> None:
    for ttl_minutes in (0, -5):
        with pytest.raises(InvalidQuantity):
            await orchestrator.reserve_many(
                "orderX", "c1", [{"product_id": "p1", "quantity": 1}], ttl_minutes=ttl_minutes
            )

    assert await repository.get("p1") is None


@pytest.mark.asyncio
async def test_raise_for_failure(orchestrator: ReservationOrchestrator) -> None:
    result = await orchestrator.reserve_many("orderX", "c1", [{"product_id": "p4", "quantity": 1}])

    with pytest.raises(PartialReservationFailure) as exc_info:
        result.raise_for_failure()

    assert exc_info.value.result is result
    assert "p4" in exc_info.value.message


class GatedStore(MemoryInventoryStore):
    """Store that pauses the first load of one product until released."""

    def __init__(self, gated: str):
        super().__init__()
        self.gated = gated
        self.reached = asyncio.Event()
        self.proceed = asyncio.Event()

    async def load(self, product_id):
        if product_id == self.gated and not self.proceed.is_set():
            self.reached.set()
            await self.proceed.wait()
        return await super().load(product_id)


@pytest.fixture
def gated_manager(catalog, settings, clock) -> ReservationManager:
    repository = InventoryRepository(GatedStore("p2"), max_retries=settings.max_conflict_retries)
    return ReservationManager(repository, catalog, settings, clock=clock)


@pytest.mark.asyncio
async def test_partial_failure_is_visible_until_compensated(
    gated_manager: ReservationManager,
    settings,
) -> None:
    """Earlier holds exist while later items run, and are gone once the call returns."""
    orchestrator = ReservationOrchestrator(gated_manager, settings)
    store = gated_manager.repository.store

    task = asyncio.create_task(
        orchestrator.reserve_many(
            "orderX",
            "c1",
            [{"product_id": "p1", "quantity": 5}, {"product_id": "p2", "quantity": 1000}],
        )
    )
    await store.reached.wait()

    assert (await gated_manager.get_stock_summary("p1")).reserved_stock == 5

    store.proceed.set()
    result = await task

    assert result.success is False
    assert (await gated_manager.get_stock_summary("p1")).reserved_stock == 0


@pytest.mark.asyncio
async def test_compensation_tolerates_already_released_hold(
    gated_manager: ReservationManager,
    settings,
) -> None:
    orchestrator = ReservationOrchestrator(gated_manager, settings)
    store = gated_manager.repository.store

    task = asyncio.create_task(
        orchestrator.reserve_many(
            "orderX",
            "c1",
            [{"product_id": "p1", "quantity": 5}, {"product_id": "p2", "quantity": 1000}],
        )
    )
    await store.reached.wait()
    await gated_manager.release("p1", "orderX", "Customer cancelled")

    store.proceed.set()
    result = await task

    assert result.successful[0].compensated is True
    summary = await gated_manager.get_stock_summary("p1")
    assert summary.reserved_stock == 0
    assert summary.available_stock == 10


@pytest.mark.asyncio
async def test_confirm_many_reports_failures_without_undoing(
    orchestrator: ReservationOrchestrator,
    manager: ReservationManager,
) -> None:
    await manager.reserve("p1", "orderX", "c1", 2)
    await manager.reserve("p3", "orderX", "c1", 4)

    result = await orchestrator.confirm_many(
        "orderX",
        [
            {"product_id": "p1", "quantity": 2},
            {"product_id": "p2", "quantity": 1},
            {"product_id": "p3", "quantity": 4},
        ],
    )

    assert result.success is False
    assert [o.product_id for o in result.successful] == ["p1", "p3"]
    assert [o.product_id for o in result.failed] == ["p2"]
    assert (await manager.get_stock_summary("p1")).sold_stock == 2
    assert (await manager.get_stock_summary("p3")).sold_stock == 4


@pytest.mark.asyncio
async def test_release_many_drains_every_hold(
    orchestrator: ReservationOrchestrator,
    manager: ReservationManager,
) -> None:
    await manager.reserve("p1", "orderX", "c1", 2)
    await manager.reserve("p1", "orderX", "c1", 1)
    await manager.reserve("p3", "orderX", "c1", 4)
    await manager.reserve("p3", "orderY", "c2", 3)

    result = await orchestrator.release_many("orderX", "Order cancelled")

    assert result.success is True
    released = {o.product_id: o.quantity for o in result.successful}
    assert released == {"p1": 3, "p3": 4}
    assert (await manager.get_stock_summary("p1")).reserved_stock == 0
    assert (await manager.get_stock_summary("p3")).reserved_stock == 3


@pytest.mark.asyncio
async def test_release_many_without_holds(orchestrator: ReservationOrchestrator) -> None:
    result = await orchestrator.release_many("unknown-order")

    assert result.success is True
    assert result.successful == []
