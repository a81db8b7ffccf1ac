"""Engine assembly and process entry point."""

import asyncio
import signal
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator

from inventory_engine.catalog import CatalogClient, create_catalog
from inventory_engine.config import Settings, get_settings
from inventory_engine.state.manager import create_store
from inventory_engine.state.repository import InventoryRepository
from inventory_engine.state.store import InventoryStore
from inventory_engine.stock.orchestrator import ReservationOrchestrator
from inventory_engine.stock.reconciliation import InventoryAdmin
from inventory_engine.stock.reservations import ReservationManager
from inventory_engine.stock.scheduler import InventoryScheduler
from inventory_engine.stock.sweeper import ExpirationSweeper
from inventory_engine.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@dataclass
class InventoryEngine:
    """Wired engine components sharing one store and catalog."""

    settings: Settings
    store: InventoryStore
    catalog: CatalogClient
    repository: InventoryRepository
    reservations: ReservationManager
    orchestrator: ReservationOrchestrator
    sweeper: ExpirationSweeper
    admin: InventoryAdmin
    scheduler: InventoryScheduler


def build_engine(
    settings: Settings | None = None,
    store: InventoryStore | None = None,
    catalog: CatalogClient | None = None,
) -> InventoryEngine:
    """Wire the engine from settings, overriding the store or catalog if given."""
    settings = settings or get_settings()
    store = store or create_store(settings)
    catalog = catalog or create_catalog(settings)

    repository = InventoryRepository(store, max_retries=settings.max_conflict_retries)
    reservations = ReservationManager(repository, catalog, settings)
    sweeper = ExpirationSweeper(repository, settings, clock=reservations.clock)
    admin = InventoryAdmin(reservations, catalog, settings)

    return InventoryEngine(
        settings=settings,
        store=store,
        catalog=catalog,
        repository=repository,
        reservations=reservations,
        orchestrator=ReservationOrchestrator(reservations, settings),
        sweeper=sweeper,
        admin=admin,
        scheduler=InventoryScheduler(sweeper, admin, settings),
    )


@asynccontextmanager
async def lifespan(engine: InventoryEngine) -> AsyncGenerator[InventoryEngine, None]:
    """Connect the store and run scheduled tasks for the duration of the block."""
    logger.info("engine_starting", environment=engine.settings.environment)
    await engine.store.connect()
    engine.scheduler.start()

    try:
        yield engine
    finally:
        logger.info("engine_shutting_down")
        await engine.scheduler.shutdown()
        await engine.store.disconnect()
        await engine.catalog.close()


async def serve(settings: Settings | None = None) -> None:
    """Run the engine's background tasks until SIGINT or SIGTERM."""
    setup_logging()
    engine = build_engine(settings)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with lifespan(engine):
        logger.info("engine_started", tasks=engine.scheduler.get_tasks_info())
        await stop.wait()


if __name__ == "__main__":
    asyncio.run(serve())
