"""Periodic maintenance tasks run inside the engine's event loop."""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from inventory_engine.config import Settings, get_settings
from inventory_engine.stock.reconciliation import InventoryAdmin
from inventory_engine.stock.sweeper import ExpirationSweeper
from inventory_engine.utils.logging import get_logger

logger = get_logger(__name__)

CLEANUP_TASK = "inventory-cleanup"
SYNC_TASK = "inventory-sync"
INITIALIZE_TASK = "inventory-initialize"


@dataclass
class ScheduledTask:
    """A named job and the asyncio task driving it."""

    name: str
    description: str
    interval_seconds: float | None
    delay_seconds: float = 0
    task: asyncio.Task | None = None

    @property
    def status(self) -> str:
        if self.task is None:
            return "stopped"
        if not self.task.done():
            return "running"
        return "cancelled" if self.task.cancelled() else "finished"

    def info(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "interval_seconds": self.interval_seconds,
            "delay_seconds": self.delay_seconds,
            "status": self.status,
        }


class InventoryScheduler:
    """
    Runs expiry sweeps, catalog syncs and the startup initialization.

    Each job is an asyncio task created by ``start()`` and cancelled by
    ``shutdown()``. A failing run is logged and the job keeps its schedule.
    """

    def __init__(
        self,
        sweeper: ExpirationSweeper,
        admin: InventoryAdmin,
        settings: Settings | None = None,
    ):
        self.sweeper = sweeper
        self.admin = admin
        self.settings = settings or get_settings()
        self.tasks: list[ScheduledTask] = []

        self._jobs: dict[str, Callable[[], Awaitable[int]]] = {
            CLEANUP_TASK: self.sweeper.sweep_expired,
            SYNC_TASK: self.admin.sync_with_catalog,
            INITIALIZE_TASK: self.admin.initialize_all,
        }

    @property
    def running(self) -> bool:
        return any(t.status == "running" for t in self.tasks)

    def start(self) -> None:
        """Create the scheduled tasks. Does nothing when the scheduler is inactive."""
        if not self.settings.scheduler_active:
            logger.info("scheduler_disabled", environment=self.settings.environment)
            return
        if self.tasks:
            return

        self._schedule(
            ScheduledTask(
                name=CLEANUP_TASK,
                description="Clean expired inventory reservations",
                interval_seconds=self.settings.sweep_interval_seconds,
                delay_seconds=self.settings.sweep_interval_seconds,
            )
        )
        self._schedule(
            ScheduledTask(
                name=SYNC_TASK,
                description="Sync catalog stock with available inventory",
                interval_seconds=self.settings.sync_interval_seconds,
                delay_seconds=self.settings.sync_interval_seconds,
            )
        )
        self._schedule(
            ScheduledTask(
                name=INITIALIZE_TASK,
                description="Create inventory records for catalog products",
                interval_seconds=None,
                delay_seconds=self.settings.init_delay_seconds,
            )
        )

        logger.info("scheduler_started", tasks=len(self.tasks))

    def _schedule(self, scheduled: ScheduledTask) -> None:
        scheduled.task = asyncio.create_task(self._run(scheduled), name=scheduled.name)
        self.tasks.append(scheduled)

    async def _run(self, scheduled: ScheduledTask) -> None:
        """Run a job after its delay, then every interval until cancelled."""
        await asyncio.sleep(scheduled.delay_seconds)

        while True:
            try:
                count = await self._jobs[scheduled.name]()
                logger.info("scheduled_task_completed", task=scheduled.name, count=count)
            except Exception as e:
                logger.error(
                    "scheduled_task_failed",
                    task=scheduled.name,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )

            if scheduled.interval_seconds is None:
                return
            await asyncio.sleep(scheduled.interval_seconds)

    async def shutdown(self) -> None:
        """Cancel every scheduled task and wait for it to stop."""
        for scheduled in self.tasks:
            if scheduled.task is not None and not scheduled.task.done():
                scheduled.task.cancel()

        await asyncio.gather(
            *(t.task for t in self.tasks if t.task is not None),
            return_exceptions=True,
        )

        for scheduled in self.tasks:
            logger.info("scheduled_task_stopped", task=scheduled.name)
        self.tasks = []
        logger.info("scheduler_shutdown_complete")

    def get_tasks_info(self) -> list[dict[str, Any]]:
        """Describe every scheduled task."""
        return [t.info() for t in self.tasks]

    async def trigger_task(self, name: str) -> int:
        """
        Run a job immediately, outside its schedule.

        Raises:
            ValueError: If no job has that name
        """
        job = self._jobs.get(name)
        if job is None:
            raise ValueError(f"Unknown task: {name}")

        logger.info("scheduled_task_triggered", task=name)
        return await job()
