"""Pytest configuration and fixtures."""

from datetime import UTC, datetime, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from inventory_engine.catalog import InMemoryCatalog
from inventory_engine.config import Settings
from inventory_engine.models.catalog import CatalogProduct
from inventory_engine.state.repository import InventoryRepository
from inventory_engine.state.store import MemoryInventoryStore
from inventory_engine.stock.orchestrator import ReservationOrchestrator
from inventory_engine.stock.reconciliation import InventoryAdmin
from inventory_engine.stock.reservations import ReservationManager
from inventory_engine.stock.sweeper import ExpirationSweeper


class FakeClock:
    """Controllable clock shared by the components under test."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@pytest.fixture
def settings() -> Settings:
    """Create test settings that ignore any local .env file."""
    return Settings(
        _env_file=None,
        environment="test",
        storage_backend="memory",
        log_format="text",
        default_reservation_minutes=30,
        default_low_stock_threshold=5,
        max_conflict_retries=3,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 15, 12, 0, tzinfo=UTC))


@pytest_asyncio.fixture
async def memory_store() -> AsyncGenerator[MemoryInventoryStore, None]:
    """Create a test record store."""
    store = MemoryInventoryStore()
    await store.connect()
    yield store
    await store.disconnect()


@pytest.fixture
def repository(memory_store: MemoryInventoryStore, settings: Settings) -> InventoryRepository:
    return InventoryRepository(memory_store, max_retries=settings.max_conflict_retries)


@pytest.fixture
def catalog() -> InMemoryCatalog:
    """Create a catalog with two sellers' products."""
    return InMemoryCatalog(
        [
            CatalogProduct(product_id="p1", seller_id="s1", name="Desk Lamp", stock=10, low_stock_alert=5),
            CatalogProduct(product_id="p2", seller_id="s1", name="Bookshelf", stock=10, low_stock_alert=5),
            CatalogProduct(product_id="p3", seller_id="s2", name="Armchair", stock=20),
            CatalogProduct(product_id="p4", seller_id="s2", name="Rug", stock=0),
        ]
    )


@pytest.fixture
def manager(
    repository: InventoryRepository,
    catalog: InMemoryCatalog,
    settings: Settings,
    clock: FakeClock,
) -> ReservationManager:
    return ReservationManager(repository, catalog, settings, clock=clock)


@pytest.fixture
def orchestrator(manager: ReservationManager, settings: Settings) -> ReservationOrchestrator:
    return ReservationOrchestrator(manager, settings)


@pytest.fixture
def sweeper(
    repository: InventoryRepository,
    settings: Settings,
    clock: FakeClock,
) -> ExpirationSweeper:
    return ExpirationSweeper(repository, settings, clock=clock)


@pytest.fixture
def admin(
    manager: ReservationManager,
    catalog: InMemoryCatalog,
    settings: Settings,
) -> InventoryAdmin:
    return InventoryAdmin(manager, catalog, settings)
