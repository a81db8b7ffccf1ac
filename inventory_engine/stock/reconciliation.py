"""Reconciliation and admin operations across many inventory records."""

import math
from typing import Iterable, Literal

from inventory_engine.catalog import CatalogClient
from inventory_engine.config import Settings
from inventory_engine.exceptions import InventoryError, ProductNotFound
from inventory_engine.models.inventory import StockSummary
from inventory_engine.models.results import (
    AvailabilityItem,
    AvailabilityReport,
    OrderItem,
    Pagination,
    ProductInventory,
    SellerOverview,
    SellerSummary,
)
from inventory_engine.stock import operations
from inventory_engine.stock.base import BaseComponent
from inventory_engine.stock.reservations import ReservationManager

SellerStatusFilter = Literal["all", "low", "out", "active"]


class InventoryAdmin(BaseComponent):
    """Bulk provisioning, catalog sync and seller-level reporting."""

    def __init__(
        self,
        manager: ReservationManager,
        catalog: CatalogClient,
        settings: Settings | None = None,
    ):
        super().__init__("inventory_admin", settings or manager.settings)
        self.manager = manager
        self.repository = manager.repository
        self.catalog = catalog

    async def initialize_all(self) -> int:
        """
        Create records for active catalog products that have none.

        Returns:
            Number of records created
        """
        initialized = 0
        for product in await self.catalog.list_active_products():
            if await self.repository.exists(product.product_id):
                continue
            _, created = await self.manager.provision(product)
            if created:
                initialized += 1

        self.logger.logger.info("inventory_initialized", initialized=initialized)
        return initialized

    async def sync_with_catalog(self) -> int:
        """
        Push available stock to the catalog wherever the catalog disagrees.

        Available stock is the authoritative sellable quantity; the catalog
        only displays it.

        Returns:
            Number of products updated in the catalog
        """
        synced = 0
        for record in await self.repository.list_records():
            if not record.is_active:
                continue

            product = await self.catalog.get_product(record.product_id)
            if product is None or product.stock == record.available_stock:
                continue

            await self.catalog.update_stock(record.product_id, record.available_stock)
            synced += 1
            self.logger.logger.debug(
                "catalog_stock_synced",
                product_id=record.product_id,
                catalog_stock=product.stock,
                available_stock=record.available_stock,
            )

        self.logger.logger.info("catalog_synced", synced=synced)
        return synced

    async def create_or_sync(
        self,
        product_id: str,
        low_stock_threshold: int | None = None,
    ) -> StockSummary:
        """
        Provision a product's record, or re-seed an existing one from the catalog.

        Re-seeding sets total stock to the catalog's stock through an
        ``adjusted`` movement and updates the low stock threshold.
        """
        product = await self.catalog.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)

        threshold = (
            low_stock_threshold
            if low_stock_threshold is not None
            else self.settings.default_low_stock_threshold
        )
        record, created = await self.manager.provision(product, threshold)
        if created:
            return record.get_stock_summary()

        def apply(current):
            current.low_stock_threshold = threshold
            if current.total_stock != product.stock:
                operations.adjust_stock(
                    current,
                    product.stock,
                    reason="Catalog sync",
                    notes="Total stock re-seeded from catalog",
                    now=self.manager.clock(),
                )
            else:
                current.refresh_availability()

        record, _ = await self.repository.mutate(product_id, apply)
        self.logger.log_mutation(
            "create_or_sync",
            product_id,
            total_stock=record.total_stock,
            low_stock_threshold=threshold,
        )
        return record.get_stock_summary()

    async def get_product_inventory(self, product_id: str) -> ProductInventory:
        """Summary, reservations and recent movements of one product."""
        record = await self.manager.ensure_record(product_id)
        limit = self.settings.movements_preview_limit

        return ProductInventory(
            summary=record.get_stock_summary(),
            reservations=record.get_reservations(now=self.manager.clock()),
            recent_movements=record.movements[-limit:] if limit > 0 else [],
        )

    async def check_availability(self, items: Iterable[OrderItem | dict]) -> AvailabilityReport:
        """Report whether each requested quantity can currently be sold."""
        report: list[AvailabilityItem] = []

        for item in items:
            if not isinstance(item, OrderItem):
                item = OrderItem.model_validate(item)

            try:
                record = await self.manager.ensure_record(item.product_id)
            except InventoryError as e:
                report.append(
                    AvailabilityItem(
                        product_id=item.product_id,
                        available=False,
                        reason=e.message,
                        requested_quantity=item.quantity,
                    )
                )
                continue

            is_available = record.is_active and record.available_stock >= item.quantity
            report.append(
                AvailabilityItem(
                    product_id=item.product_id,
                    available=is_available,
                    reason="Available" if is_available else "Insufficient stock",
                    requested_quantity=item.quantity,
                    available_stock=record.available_stock,
                    total_stock=record.total_stock,
                    reserved_stock=record.reserved_stock,
                )
            )

        available_count = sum(1 for entry in report if entry.available)
        return AvailabilityReport(
            all_available=available_count == len(report),
            items=report,
            summary={
                "total": len(report),
                "available": available_count,
                "unavailable": len(report) - available_count,
            },
        )

    async def get_seller_overview(
        self,
        seller_id: str,
        status: SellerStatusFilter = "all",
        page: int = 1,
        limit: int = 20,
    ) -> SellerOverview:
        """
        Paginated seller inventory plus aggregate counters.

        The aggregate covers every record of the seller regardless of the
        status filter.
        """
        page = max(1, int(page))
        limit = max(1, int(limit))
        records = await self.repository.list_records(seller_id)

        summary = SellerSummary(
            total_products=len(records),
            total_stock=sum(r.total_stock for r in records),
            total_reserved=sum(r.reserved_stock for r in records),
            total_sold=sum(r.sold_stock for r in records),
            total_available=sum(r.available_stock for r in records),
            low_stock_count=sum(1 for r in records if r.is_low_stock),
            out_of_stock_count=sum(1 for r in records if r.is_out_of_stock),
        )

        if status == "low":
            records = [r for r in records if r.is_low_stock]
        elif status == "out":
            records = [r for r in records if r.is_out_of_stock]
        elif status == "active":
            records = [r for r in records if r.is_active]

        records.sort(key=lambda r: r.updated_at, reverse=True)
        start = (page - 1) * limit

        return SellerOverview(
            seller_id=seller_id,
            inventories=[r.get_stock_summary() for r in records[start : start + limit]],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=len(records),
                pages=math.ceil(len(records) / limit),
            ),
            summary=summary,
        )

    async def get_low_stock_products(self, seller_id: str | None = None) -> list[StockSummary]:
        """Active low stock records, lowest available stock first."""
        records = [
            r for r in await self.repository.list_records(seller_id) if r.is_active and r.is_low_stock
        ]
        records.sort(key=lambda r: r.available_stock)
        return [r.get_stock_summary() for r in records]
