"""Bulk Reservation Orchestrator - multi-item holds for one order."""

from typing import Iterable

from pydantic import ValidationError

from inventory_engine.config import Settings
from inventory_engine.exceptions import ReservationNotFound
from inventory_engine.models.results import (
    BatchResult,
    BulkReservationResult,
    ItemOutcome,
    OrderItem,
)
from inventory_engine.stock import operations
from inventory_engine.stock.base import BaseComponent
from inventory_engine.stock.reservations import ReservationManager
from inventory_engine.utils.tracing import BatchTracer

ROLLBACK_REASON = "Partial reservation failure - rollback"


class ReservationOrchestrator(BaseComponent):
    """
    Coordinates reservations that span several products.

    Products are independent records, so a multi-item reservation cannot be
    atomic. ``reserve_many`` applies items one after another and, on the
    first failure, releases every hold it already placed. Until those
    compensating releases land, earlier items stay reserved; callers observe
    a consistent ledger once the call returns.
    """

    def __init__(self, manager: ReservationManager, settings: Settings | None = None):
        super().__init__("reservation_orchestrator", settings or manager.settings)
        self.manager = manager

    @staticmethod
    def _parse_items(items: Iterable[OrderItem | dict]) -> tuple[list[OrderItem], list[ItemOutcome]]:
        """Split raw items into order items and failed outcomes for malformed ones."""
        parsed: list[OrderItem] = []
        invalid: list[ItemOutcome] = []

        for item in items:
            if isinstance(item, OrderItem):
                parsed.append(item)
                continue
            try:
                parsed.append(OrderItem.model_validate(item))
            except ValidationError as e:
                raw = item if isinstance(item, dict) else {}
                quantity = raw.get("quantity")
                invalid.append(
                    ItemOutcome(
                        product_id=str(raw.get("product_id", "")),
                        success=False,
                        quantity=quantity if isinstance(quantity, int) and not isinstance(quantity, bool) else None,
                        error="; ".join(err["msg"] for err in e.errors()),
                        error_type="InvalidQuantity",
                    )
                )

        return parsed, invalid

    async def reserve_many(
        self,
        order_id: str,
        customer_id: str,
        items: Iterable[OrderItem | dict],
        ttl_minutes: int | None = None,
    ) -> BulkReservationResult:
        """
        Reserve every item of an order, or none of them.

        Args:
            order_id: Order the holds belong to
            customer_id: Customer placing the order
            items: Products and quantities to hold
            ttl_minutes: Minutes until the holds expire

        Returns:
            BulkReservationResult; ``success`` is True only when every item
            was reserved. Otherwise every earlier hold has been released.
            Malformed items are reported in ``failed`` and nothing is held.
        """
        if ttl_minutes is None:
            ttl_minutes = self.settings.default_reservation_minutes
        operations.reservation_ttl(ttl_minutes)

        items, invalid = self._parse_items(items)
        if invalid:
            self.logger.logger.warning(
                "invalid_order_items",
                order_id=order_id,
                product_ids=[outcome.product_id for outcome in invalid],
            )
            return BulkReservationResult(
                order_id=order_id,
                success=False,
                failed=invalid,
                skipped=items,
                ttl_minutes=ttl_minutes,
            )

        tracer = BatchTracer("reserve_many", order_id)

        successful: list[ItemOutcome] = []
        failed: list[ItemOutcome] = []
        skipped: list[OrderItem] = []

        for index, item in enumerate(items):
            outcome = await self.execute_step(
                "reserve",
                item.product_id,
                order_id,
                self.manager.reserve,
                {
                    "product_id": item.product_id,
                    "order_id": order_id,
                    "customer_id": customer_id,
                    "quantity": item.quantity,
                    "ttl_minutes": ttl_minutes,
                },
                tracer=tracer,
                quantity=item.quantity,
            )

            if outcome.success:
                successful.append(outcome)
                continue

            failed.append(outcome)
            skipped = items[index + 1 :]
            break

        if failed:
            await self._compensate(order_id, successful, tracer)

        tracer.finish()

        return BulkReservationResult(
            order_id=order_id,
            success=not failed,
            successful=successful,
            failed=failed,
            skipped=skipped,
            ttl_minutes=ttl_minutes,
        )

    async def _compensate(
        self,
        order_id: str,
        reserved: list[ItemOutcome],
        tracer: BatchTracer,
    ) -> None:
        """Release the holds this batch placed, newest first."""
        for outcome in reversed(reserved):
            reservation_id = outcome.result["reservation_id"]

            with tracer.trace_step("compensate", outcome.product_id) as metadata:
                try:
                    await self.manager.release(
                        outcome.product_id,
                        order_id,
                        ROLLBACK_REASON,
                        reservation_id=reservation_id,
                    )
                    outcome.compensated = True
                    metadata["result"] = "released"
                except ReservationNotFound:
                    # Already released or expired: nothing left to undo
                    outcome.compensated = True
                    metadata["result"] = "already_inactive"
                except Exception as e:
                    metadata["result"] = "failed"
                    self.logger.log_error(
                        error=str(e),
                        product_id=outcome.product_id,
                        order_id=order_id,
                        operation="compensate",
                        reservation_id=reservation_id,
                    )

            self.logger.log_compensation(
                product_id=outcome.product_id,
                order_id=order_id,
                reason=ROLLBACK_REASON,
                success=outcome.compensated,
                result=metadata["result"],
            )

    async def confirm_many(
        self,
        order_id: str,
        items: Iterable[OrderItem | dict],
    ) -> BatchResult:
        """Confirm each item's reservation. Failures are reported, not undone."""
        tracer = BatchTracer("confirm_many", order_id)
        items, invalid = self._parse_items(items)
        result = BatchResult(order_id=order_id, failed=invalid)

        for item in items:
            outcome = await self.execute_step(
                "confirm",
                item.product_id,
                order_id,
                self.manager.confirm,
                {"product_id": item.product_id, "order_id": order_id},
                tracer=tracer,
                quantity=item.quantity,
            )
            (result.successful if outcome.success else result.failed).append(outcome)

        tracer.finish()
        return result

    async def release_many(self, order_id: str, reason: str = "Order cancelled") -> BatchResult:
        """
        Release every active hold an order has, on every product.

        Products are found through the store's order index. Failures are
        reported per product for manual reconciliation.
        """
        tracer = BatchTracer("release_many", order_id)
        result = BatchResult(order_id=order_id, reason=reason)

        for product_id in await self.manager.repository.products_for_order(order_id):
            outcome = await self.execute_step(
                "release",
                product_id,
                order_id,
                self._release_all,
                {"product_id": product_id, "order_id": order_id, "reason": reason},
                tracer=tracer,
            )
            if outcome.success:
                outcome.quantity = outcome.result["released_quantity"]
            (result.successful if outcome.success else result.failed).append(outcome)

        tracer.finish()
        return result

    async def _release_all(self, product_id: str, order_id: str, reason: str) -> dict:
        """Drain every active reservation the order holds on one product."""
        released_quantity = 0
        released_count = 0

        record = await self.manager.repository.get(product_id)
        holds = [r for r in record.active_reservations if r.order_id == order_id] if record else []
        if not holds:
            raise ReservationNotFound(product_id, order_id)

        summary = None
        for hold in holds:
            try:
                summary = await self.manager.release(
                    product_id, order_id, reason, reservation_id=hold.reservation_id
                )
            except ReservationNotFound:
                # Expired or released concurrently since the record was read
                continue
            released_quantity += hold.quantity
            released_count += 1

        if summary is None:
            raise ReservationNotFound(product_id, order_id)

        return {
            "released_quantity": released_quantity,
            "released_count": released_count,
            "available_stock": summary.available_stock,
        }
