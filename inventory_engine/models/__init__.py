"""Data models for the inventory engine."""

from inventory_engine.models.catalog import CatalogProduct
from inventory_engine.models.inventory import (
    InventoryRecord,
    Movement,
    MovementType,
    Reservation,
    ReservationStatus,
    ReservationView,
    StockSummary,
)
from inventory_engine.models.results import (
    AvailabilityItem,
    AvailabilityReport,
    BatchResult,
    BulkReservationResult,
    ItemOutcome,
    MovementPage,
    OrderItem,
    Pagination,
    ProductInventory,
    ReserveResult,
    SellerOverview,
    SellerSummary,
)

__all__ = [
    # Catalog
    "CatalogProduct",
    # Inventory
    "InventoryRecord",
    "Movement",
    "MovementType",
    "Reservation",
    "ReservationStatus",
    "ReservationView",
    "StockSummary",
    # Results
    "AvailabilityItem",
    "AvailabilityReport",
    "BatchResult",
    "BulkReservationResult",
    "ItemOutcome",
    "MovementPage",
    "OrderItem",
    "Pagination",
    "ProductInventory",
    "ReserveResult",
    "SellerOverview",
    "SellerSummary",
]
