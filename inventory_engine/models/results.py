"""Result and request models returned by engine operations."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from inventory_engine.exceptions import PartialReservationFailure
from inventory_engine.models.inventory import Movement, ReservationView, StockSummary


class Pagination(BaseModel):
    """Page position within a listing."""

    page: int
    limit: int
    total: int
    pages: int


class MovementPage(BaseModel):
    """One page of a product's movement history."""

    product_id: str
    movements: list[Movement]
    pagination: Pagination
    current_stock: StockSummary


class ReserveResult(BaseModel):
    """Outcome of a single successful reservation."""

    product_id: str
    order_id: str
    reservation_id: str
    quantity: int
    available_stock: int
    expires_at: datetime


class OrderItem(BaseModel):
    """A product and quantity requested by an order."""

    product_id: str
    quantity: int = Field(ge=1)
    unit_price: float | None = None


class ItemOutcome(BaseModel):
    """Per-item result of a batch operation."""

    product_id: str
    success: bool
    quantity: int | None = None
    result: Any = None
    error: str | None = None
    error_type: str | None = None
    compensated: bool = False
    execution_time_ms: float = 0.0


class BulkReservationResult(BaseModel):
    """Outcome of reserving every item of an order."""

    order_id: str
    success: bool
    successful: list[ItemOutcome] = Field(default_factory=list)
    failed: list[ItemOutcome] = Field(default_factory=list)
    skipped: list[OrderItem] = Field(default_factory=list)
    ttl_minutes: int

    def raise_for_failure(self) -> "BulkReservationResult":
        """Raise PartialReservationFailure unless every item was reserved."""
        if not self.success:
            raise PartialReservationFailure(self)
        return self


class BatchResult(BaseModel):
    """Best-effort batch outcome, without compensation."""

    order_id: str
    successful: list[ItemOutcome] = Field(default_factory=list)
    failed: list[ItemOutcome] = Field(default_factory=list)
    reason: str | None = None

    @property
    def success(self) -> bool:
        return not self.failed


class ProductInventory(BaseModel):
    """Full inventory view of one product."""

    summary: StockSummary
    reservations: list[ReservationView]
    recent_movements: list[Movement]


class AvailabilityItem(BaseModel):
    """Whether one requested quantity can currently be sold."""

    product_id: str
    available: bool
    reason: str
    requested_quantity: int
    available_stock: int = 0
    total_stock: int | None = None
    reserved_stock: int | None = None


class AvailabilityReport(BaseModel):
    """Availability of every item in a request."""

    all_available: bool
    items: list[AvailabilityItem]
    summary: dict[str, int]


class SellerSummary(BaseModel):
    """Aggregate counters over all of a seller's records."""

    total_products: int = 0
    total_stock: int = 0
    total_reserved: int = 0
    total_sold: int = 0
    total_available: int = 0
    low_stock_count: int = 0
    out_of_stock_count: int = 0


class SellerOverview(BaseModel):
    """Paginated seller inventory with aggregate counters."""

    seller_id: str
    inventories: list[StockSummary]
    pagination: Pagination
    summary: SellerSummary
