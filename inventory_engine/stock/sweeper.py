"""Expiration Sweeper - reclaims reservations whose time-to-live has elapsed."""

from datetime import datetime
from typing import Callable

from inventory_engine.config import Settings
from inventory_engine.models.inventory import InventoryRecord, utc_now
from inventory_engine.state.repository import InventoryRepository
from inventory_engine.stock import operations
from inventory_engine.stock.base import BaseComponent


class ExpirationSweeper(BaseComponent):
    """
    Releases expired reservations record by record.

    Only records listed in the store's expiry index are visited, and each
    one goes through the same serialized mutation path as reserve/confirm/
    release, so a sweep never blocks reservations on unrelated products.
    """

    def __init__(
        self,
        repository: InventoryRepository,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        super().__init__("expiration_sweeper", settings)
        self.repository = repository
        self.clock = clock or utc_now

    async def sweep_expired(self, now: datetime | None = None) -> int:
        """
        Release every active reservation that expired before ``now``.

        Returns:
            Number of reservations reclaimed
        """
        now = now or self.clock()
        product_ids = await self.repository.due_for_expiry(now)

        cleaned_count = 0
        failed_records = 0

        for product_id in product_ids:
            try:
                cleaned_count += await self._sweep_record(product_id, now)
            except Exception as e:
                # One broken record must not stop the rest of the sweep
                failed_records += 1
                self.logger.log_error(
                    error=str(e),
                    product_id=product_id,
                    operation="sweep_expired",
                    error_type=type(e).__name__,
                )

        self.logger.logger.info(
            "expired_reservations_swept",
            cleaned_count=cleaned_count,
            records_visited=len(product_ids),
            failed_records=failed_records,
        )
        return cleaned_count

    async def _sweep_record(self, product_id: str, now: datetime) -> int:
        def apply(record: InventoryRecord):
            return operations.expire_due(record, now)

        record, expired = await self.repository.mutate(product_id, apply)

        for reservation in expired:
            self.logger.log_mutation(
                "expire",
                product_id,
                reservation.order_id,
                quantity=reservation.quantity,
                reserved_stock=record.reserved_stock,
            )
        return len(expired)
