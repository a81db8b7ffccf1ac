"""Inventory records with embedded reservations and stock movements."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from inventory_engine.stock.availability import recompute


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class ReservationStatus(str, Enum):
    """Lifecycle states of a reservation."""

    ACTIVE = "active"
    CONFIRMED = "confirmed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class MovementType(str, Enum):
    """Kinds of stock-affecting events."""

    IN = "in"
    OUT = "out"
    RESERVED = "reserved"
    RELEASED = "released"
    SOLD = "sold"
    ADJUSTED = "adjusted"
    RETURNED = "returned"


class Reservation(BaseModel):
    """Time-bounded hold of stock for one order."""

    reservation_id: str = Field(default_factory=lambda: uuid4().hex)
    order_id: str
    customer_id: str
    quantity: int = Field(ge=1)
    reserved_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime
    status: ReservationStatus = ReservationStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        """Check if the reservation still holds stock."""
        return self.status == ReservationStatus.ACTIVE

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the reservation's time-to-live has elapsed."""
        return self.expires_at < (now or utc_now())


class Movement(BaseModel):
    """Immutable audit entry for one stock-affecting event."""

    movement_type: MovementType
    quantity: int
    reason: str | None = None
    order_id: str | None = None
    customer_id: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)
    previous_stock: int
    new_stock: int
    notes: str | None = None


class ReservationView(BaseModel):
    """Read model of a reservation as shown to admins and sellers."""

    reservation_id: str
    order_id: str
    customer_id: str
    quantity: int
    reserved_at: datetime
    expires_at: datetime
    status: ReservationStatus
    is_expired: bool


class StockSummary(BaseModel):
    """Counters and flags of one inventory record."""

    product_id: str
    seller_id: str
    total_stock: int
    reserved_stock: int
    sold_stock: int
    available_stock: int
    is_out_of_stock: bool
    is_low_stock: bool
    is_active: bool
    low_stock_threshold: int
    active_reservations: int
    expired_reservations: int
    last_updated: datetime


class InventoryRecord(BaseModel):
    """Stock ledger for a single product."""

    product_id: str
    seller_id: str

    # Stock levels
    total_stock: int = Field(default=0, ge=0)
    reserved_stock: int = Field(default=0, ge=0)
    sold_stock: int = Field(default=0, ge=0)

    # Derived from the counters, never trusted from input
    available_stock: int = Field(default=0, ge=0)
    is_out_of_stock: bool = False
    is_low_stock: bool = False

    low_stock_threshold: int = Field(default=10, ge=0)
    is_active: bool = True

    reservations: list[Reservation] = Field(default_factory=list)
    movements: list[Movement] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _derive_availability(self) -> "InventoryRecord":
        self.refresh_availability()
        return self

    def refresh_availability(self) -> None:
        """Recompute available stock and the stock status flags."""
        availability = recompute(
            self.total_stock,
            self.reserved_stock,
            self.sold_stock,
            self.low_stock_threshold,
        )
        self.available_stock = availability.available_stock
        self.is_out_of_stock = availability.is_out_of_stock
        self.is_low_stock = availability.is_low_stock

    @property
    def active_reservations(self) -> list[Reservation]:
        return [r for r in self.reservations if r.is_active]

    @property
    def active_order_ids(self) -> set[str]:
        """Orders currently holding stock on this record."""
        return {r.order_id for r in self.active_reservations}

    @property
    def next_expiry(self) -> datetime | None:
        """Earliest expiry among active reservations."""
        expiries = [r.expires_at for r in self.active_reservations]
        return min(expiries) if expiries else None

    def find_active_reservation(
        self,
        order_id: str,
        reservation_id: str | None = None,
    ) -> Reservation | None:
        """Find the oldest active reservation for an order."""
        for reservation in self.reservations:
            if not reservation.is_active or reservation.order_id != order_id:
                continue
            if reservation_id is None or reservation.reservation_id == reservation_id:
                return reservation
        return None

    def get_reservations(
        self,
        status: ReservationStatus | str | None = None,
        now: datetime | None = None,
    ) -> list[ReservationView]:
        """Get reservation details, optionally filtered by status."""
        now = now or utc_now()
        reservations = self.reservations
        if status:
            reservations = [r for r in reservations if r.status == status]

        return [
            ReservationView(
                reservation_id=r.reservation_id,
                order_id=r.order_id,
                customer_id=r.customer_id,
                quantity=r.quantity,
                reserved_at=r.reserved_at,
                expires_at=r.expires_at,
                status=r.status,
                is_expired=r.is_expired(now),
            )
            for r in reservations
        ]

    def get_stock_summary(self) -> StockSummary:
        """Summarize the record's counters and flags."""
        return StockSummary(
            product_id=self.product_id,
            seller_id=self.seller_id,
            total_stock=self.total_stock,
            reserved_stock=self.reserved_stock,
            sold_stock=self.sold_stock,
            available_stock=self.available_stock,
            is_out_of_stock=self.is_out_of_stock,
            is_low_stock=self.is_low_stock,
            is_active=self.is_active,
            low_stock_threshold=self.low_stock_threshold,
            active_reservations=sum(
                1 for r in self.reservations if r.status == ReservationStatus.ACTIVE
            ),
            expired_reservations=sum(
                1 for r in self.reservations if r.status == ReservationStatus.EXPIRED
            ),
            last_updated=self.updated_at,
        )
