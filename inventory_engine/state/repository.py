"""Inventory record persistence and the serialized mutation path."""

from datetime import datetime
from typing import Callable, TypeVar

from inventory_engine.config import get_settings
from inventory_engine.exceptions import ConcurrencyConflict, ProductNotFound
from inventory_engine.models.inventory import InventoryRecord
from inventory_engine.state.locks import KeyedLock
from inventory_engine.state.store import InventoryStore, RecordIndexes, StoredRecord, VersionConflict
from inventory_engine.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class InventoryRepository:
    """
    Loads and persists InventoryRecords.

    Every mutation runs under an in-process lock for its product and is
    written back with an optimistic version check, so concurrent writers on
    the same record (in this process or another) are serialized while
    unrelated products never wait on each other.
    """

    def __init__(
        self,
        store: InventoryStore,
        max_retries: int | None = None,
        locks: KeyedLock | None = None,
    ):
        self.store = store
        self.max_retries = max_retries or get_settings().max_conflict_retries
        self.locks = locks or KeyedLock()

    @staticmethod
    def _indexes(record: InventoryRecord) -> RecordIndexes:
        return RecordIndexes(
            seller_id=record.seller_id,
            is_active=record.is_active,
            next_expiry=record.next_expiry,
            active_orders=record.active_order_ids,
        )

    @staticmethod
    def _to_record(stored: StoredRecord) -> InventoryRecord:
        return InventoryRecord.model_validate(stored.data)

    async def _write(self, record: InventoryRecord, expected_version: int) -> int:
        record.refresh_availability()
        return await self.store.save(
            record.product_id,
            record.model_dump(mode="json"),
            expected_version,
            self._indexes(record),
        )

    async def get(self, product_id: str) -> InventoryRecord | None:
        """Retrieve a record by product ID."""
        stored = await self.store.load(product_id)
        if stored is None:
            return None
        return self._to_record(stored)

    async def exists(self, product_id: str) -> bool:
        return await self.store.load(product_id) is not None

    async def create(self, record: InventoryRecord) -> tuple[InventoryRecord, bool]:
        """
        Persist a new record unless one already exists.

        Returns:
            The stored record and whether this call created it
        """
        async with self.locks.acquire(record.product_id):
            stored = await self.store.load(record.product_id)
            if stored is not None:
                return self._to_record(stored), False

            try:
                await self._write(record, expected_version=0)
            except VersionConflict:
                # Another instance provisioned it first
                stored = await self.store.load(record.product_id)
                return self._to_record(stored), False

        logger.info(
            "inventory_record_created",
            product_id=record.product_id,
            seller_id=record.seller_id,
            total_stock=record.total_stock,
        )
        return record, True

    async def mutate(
        self,
        product_id: str,
        operation: Callable[[InventoryRecord], T],
    ) -> tuple[InventoryRecord, T]:
        """
        Apply ``operation`` to the current record and persist the result.

        The operation may raise to abort; nothing is written in that case.
        On a version conflict the record is reloaded and the operation is
        applied again to the fresh state.

        Returns:
            The persisted record and the operation's return value
        """
        async with self.locks.acquire(product_id):
            for attempt in range(1, self.max_retries + 1):
                stored = await self.store.load(product_id)
                if stored is None:
                    raise ProductNotFound(product_id, "Inventory not found")

                record = self._to_record(stored)
                result = operation(record)

                try:
                    await self._write(record, expected_version=stored.version)
                    return record, result
                except VersionConflict as exc:
                    logger.warning(
                        "record_version_conflict",
                        product_id=product_id,
                        attempt=attempt,
                        max_retries=self.max_retries,
                        error=str(exc),
                    )

        raise ConcurrencyConflict(product_id, self.max_retries)

    async def list_records(self, seller_id: str | None = None) -> list[InventoryRecord]:
        """Load every record, optionally for one seller."""
        records = []
        for product_id in await self.store.list_product_ids(seller_id):
            record = await self.get(product_id)
            if record is not None:
                records.append(record)
        return records

    async def due_for_expiry(self, now: datetime) -> list[str]:
        return await self.store.due_for_expiry(now)

    async def products_for_order(self, order_id: str) -> list[str]:
        return await self.store.products_for_order(order_id)
