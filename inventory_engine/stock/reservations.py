"""Reservation Manager - single-record stock operations."""

from datetime import datetime
from typing import Callable

from inventory_engine.catalog import CatalogClient
from inventory_engine.config import Settings
from inventory_engine.exceptions import InsufficientStock, ProductNotFound
from inventory_engine.models.catalog import CatalogProduct
from inventory_engine.models.inventory import (
    InventoryRecord,
    MovementType,
    ReservationStatus,
    ReservationView,
    StockSummary,
    utc_now,
)
from inventory_engine.models.results import MovementPage, ReserveResult
from inventory_engine.state.repository import InventoryRepository
from inventory_engine.stock import operations
from inventory_engine.stock.base import BaseComponent
from inventory_engine.stock.ledger import MovementLedger


class ReservationManager(BaseComponent):
    """
    Reservation manager that owns every mutation of a single record.

    Responsibilities:
    - Provision records lazily from the catalog
    - Reserve, confirm and release stock for orders
    - Restock, adjust and process returns
    - Answer stock, reservation and movement queries
    """

    def __init__(
        self,
        repository: InventoryRepository,
        catalog: CatalogClient,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        super().__init__("reservation_manager", settings)
        self.repository = repository
        self.catalog = catalog
        self.ledger = MovementLedger(repository)
        self.clock = clock or utc_now

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------
    def build_record(
        self,
        product: CatalogProduct,
        low_stock_threshold: int | None = None,
    ) -> InventoryRecord:
        """Seed a new record from catalog data."""
        if low_stock_threshold is None:
            low_stock_threshold = product.low_stock_alert
        if low_stock_threshold is None:
            low_stock_threshold = self.settings.default_low_stock_threshold

        now = self.clock()
        return InventoryRecord(
            product_id=product.product_id,
            seller_id=product.seller_id,
            total_stock=product.stock,
            low_stock_threshold=low_stock_threshold,
            created_at=now,
            updated_at=now,
        )

    async def provision(
        self,
        product: CatalogProduct,
        low_stock_threshold: int | None = None,
    ) -> tuple[InventoryRecord, bool]:
        """Create a record for a catalog product unless one exists."""
        return await self.repository.create(self.build_record(product, low_stock_threshold))

    async def ensure_record(self, product_id: str) -> InventoryRecord:
        """Get a product's record, creating it from the catalog on first use."""
        record = await self.repository.get(product_id)
        if record is not None:
            return record

        product = await self.catalog.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)

        record, _ = await self.provision(product)
        return record

    async def _get_record(self, product_id: str) -> InventoryRecord:
        record = await self.repository.get(product_id)
        if record is None:
            raise ProductNotFound(product_id, "Inventory not found")
        return record

    # ------------------------------------------------------------------
    # Reservations
    # ------------------------------------------------------------------
    async def reserve(
        self,
        product_id: str,
        order_id: str,
        customer_id: str,
        quantity: int,
        ttl_minutes: int | None = None,
    ) -> ReserveResult:
        """
        Hold stock for an order.

        Args:
            product_id: Product to reserve
            order_id: Order the hold belongs to
            customer_id: Customer placing the order
            quantity: Units to hold
            ttl_minutes: Minutes until the hold expires

        Returns:
            ReserveResult with the remaining available stock and expiry
        """
        if ttl_minutes is None:
            ttl_minutes = self.settings.default_reservation_minutes
        ttl = operations.reservation_ttl(ttl_minutes)

        await self.ensure_record(product_id)

        def apply(record: InventoryRecord):
            if not record.is_active:
                raise ProductNotFound(product_id, f"Inventory for product {product_id} is inactive")
            return operations.reserve(
                record, order_id, customer_id, quantity, ttl, now=self.clock()
            )

        try:
            record, reservation = await self.repository.mutate(product_id, apply)
        except InsufficientStock as e:
            self.logger.logger.info(
                "reservation_rejected",
                product_id=product_id,
                order_id=order_id,
                available=e.available,
                requested=e.requested,
            )
            raise

        self.logger.log_mutation(
            "reserve",
            product_id,
            order_id,
            quantity=quantity,
            reserved_stock=record.reserved_stock,
            available_stock=record.available_stock,
        )
        return ReserveResult(
            product_id=product_id,
            order_id=order_id,
            reservation_id=reservation.reservation_id,
            quantity=quantity,
            available_stock=record.available_stock,
            expires_at=reservation.expires_at,
        )

    async def confirm(self, product_id: str, order_id: str) -> StockSummary:
        """Convert an order's active reservation into a sale."""
        record, reservation = await self.repository.mutate(
            product_id,
            lambda r: operations.confirm(r, order_id, now=self.clock()),
        )

        self.logger.log_mutation(
            "confirm",
            product_id,
            order_id,
            quantity=reservation.quantity,
            sold_stock=record.sold_stock,
        )
        return record.get_stock_summary()

    async def release(
        self,
        product_id: str,
        order_id: str,
        reason: str = "Order cancelled",
        reservation_id: str | None = None,
    ) -> StockSummary:
        """
        Release an order's active reservation.

        Raises ReservationNotFound when no active reservation matches, which
        also covers a second release of the same reservation.
        """
        record, reservation = await self.repository.mutate(
            product_id,
            lambda r: operations.release(
                r, order_id, reason, reservation_id=reservation_id, now=self.clock()
            ),
        )

        self.logger.log_mutation(
            "release",
            product_id,
            order_id,
            quantity=reservation.quantity,
            reason=reason,
            status=reservation.status.value,
            available_stock=record.available_stock,
        )
        return record.get_stock_summary()

    # ------------------------------------------------------------------
    # Stock levels
    # ------------------------------------------------------------------
    async def adjust_stock(
        self,
        product_id: str,
        new_total: int,
        reason: str = "Manual adjustment",
        notes: str | None = None,
    ) -> StockSummary:
        """Set total stock directly as an administrative correction."""
        await self.ensure_record(product_id)
        record, movement = await self.repository.mutate(
            product_id,
            lambda r: operations.adjust_stock(r, new_total, reason, notes, now=self.clock()),
        )

        self.logger.log_mutation(
            "adjust_stock",
            product_id,
            delta=movement.quantity,
            total_stock=record.total_stock,
            reason=reason,
        )
        return record.get_stock_summary()

    async def add_stock(
        self,
        product_id: str,
        quantity: int,
        reason: str = "Stock replenishment",
        notes: str | None = None,
    ) -> StockSummary:
        """Restock a product."""
        await self.ensure_record(product_id)
        record, _ = await self.repository.mutate(
            product_id,
            lambda r: operations.add_stock(r, quantity, reason, notes, now=self.clock()),
        )

        self.logger.log_mutation(
            "add_stock",
            product_id,
            quantity=quantity,
            total_stock=record.total_stock,
        )
        return record.get_stock_summary()

    async def process_return(
        self,
        product_id: str,
        order_id: str,
        quantity: int,
        reason: str = "Product return",
    ) -> StockSummary:
        """Bring returned units back from sold stock."""
        record, _ = await self.repository.mutate(
            product_id,
            lambda r: operations.process_return(r, order_id, quantity, reason, now=self.clock()),
        )

        self.logger.log_mutation(
            "process_return",
            product_id,
            order_id,
            quantity=quantity,
            sold_stock=record.sold_stock,
            total_stock=record.total_stock,
        )
        return record.get_stock_summary()

    async def set_active(self, product_id: str, active: bool) -> StockSummary:
        """Deactivate or reactivate a record. Records are never deleted."""

        def apply(record: InventoryRecord) -> None:
            record.is_active = active
            record.updated_at = self.clock()

        record, _ = await self.repository.mutate(product_id, apply)

        self.logger.log_mutation("set_active", product_id, is_active=active)
        return record.get_stock_summary()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    async def get_stock_summary(self, product_id: str) -> StockSummary:
        record = await self._get_record(product_id)
        return record.get_stock_summary()

    async def get_reservations(
        self,
        product_id: str,
        status: ReservationStatus | str | None = None,
    ) -> list[ReservationView]:
        record = await self._get_record(product_id)
        return record.get_reservations(status, now=self.clock())

    async def get_movements(
        self,
        product_id: str,
        movement_type: MovementType | str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> MovementPage:
        return await self.ledger.list(product_id, movement_type, page, limit)
