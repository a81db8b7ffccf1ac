"""
Record-level stock transitions.

Each function mutates one InventoryRecord in memory, appends exactly one
movement per counter change and refreshes derived availability. Nothing
here performs I/O; callers run these inside the repository's serialized
mutation path so a raised error leaves the stored record untouched.
"""

from datetime import datetime, timedelta

from inventory_engine.exceptions import (
    InsufficientStock,
    InvalidAdjustment,
    InvalidQuantity,
    ReservationNotFound,
)
from inventory_engine.models.inventory import (
    InventoryRecord,
    Movement,
    MovementType,
    Reservation,
    ReservationStatus,
    utc_now,
)
from inventory_engine.state.workflow import ReservationTransitions
from inventory_engine.stock import ledger

EXPIRED_REASON = "Reservation expired"


def _is_whole_number(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def reservation_ttl(minutes: int) -> timedelta:
    """Hold lifetime for a TTL given in whole minutes."""
    if not _is_whole_number(minutes) or minutes < 1:
        raise InvalidQuantity(f"Reservation TTL must be a positive number of minutes, got {minutes!r}")
    return timedelta(minutes=minutes)


def _touch(record: InventoryRecord, now: datetime) -> None:
    record.refresh_availability()
    record.updated_at = now


def _transition(reservation: Reservation, to_state: ReservationStatus) -> None:
    if not ReservationTransitions.can_transition(reservation.status, to_state):
        raise ValueError(f"Cannot move reservation from {reservation.status.value} to {to_state.value}")
    reservation.status = to_state


def reserve(
    record: InventoryRecord,
    order_id: str,
    customer_id: str,
    quantity: int,
    ttl: timedelta,
    now: datetime | None = None,
) -> Reservation:
    """Hold stock for an order."""
    if not _is_whole_number(quantity) or quantity < 1:
        raise InvalidQuantity(f"Quantity must be a positive integer, got {quantity!r}")

    now = now or utc_now()
    record.refresh_availability()
    if quantity > record.available_stock:
        raise InsufficientStock(record.product_id, record.available_stock, quantity)

    reservation = Reservation(
        order_id=order_id,
        customer_id=customer_id,
        quantity=quantity,
        reserved_at=now,
        expires_at=now + ttl,
    )
    record.reservations.append(reservation)

    previous_reserved = record.reserved_stock
    record.reserved_stock += quantity

    ledger.append(
        record,
        Movement(
            movement_type=MovementType.RESERVED,
            quantity=-quantity,
            reason="Stock reserved for order",
            order_id=order_id,
            customer_id=customer_id,
            timestamp=now,
            previous_stock=previous_reserved,
            new_stock=record.reserved_stock,
            notes=f"Reserved {quantity} units for order {order_id}",
        ),
    )
    _touch(record, now)
    return reservation


def confirm(
    record: InventoryRecord,
    order_id: str,
    now: datetime | None = None,
) -> Reservation:
    """Convert an order's active reservation into a sale."""
    reservation = record.find_active_reservation(order_id)
    if reservation is None:
        raise ReservationNotFound(record.product_id, order_id)

    now = now or utc_now()
    _transition(reservation, ReservationStatus.CONFIRMED)

    previous_sold = record.sold_stock
    record.reserved_stock -= reservation.quantity
    record.sold_stock += reservation.quantity

    ledger.append(
        record,
        Movement(
            movement_type=MovementType.SOLD,
            quantity=-reservation.quantity,
            reason="Order confirmed and fulfilled",
            order_id=order_id,
            customer_id=reservation.customer_id,
            timestamp=now,
            previous_stock=previous_sold,
            new_stock=record.sold_stock,
            notes=f"Order {order_id} confirmed - {reservation.quantity} units sold",
        ),
    )
    _touch(record, now)
    return reservation


def release(
    record: InventoryRecord,
    order_id: str,
    reason: str = "Order cancelled",
    reservation_id: str | None = None,
    now: datetime | None = None,
    notes: str | None = None,
) -> Reservation:
    """Return an order's held stock to the available pool."""
    reservation = record.find_active_reservation(order_id, reservation_id)
    if reservation is None:
        raise ReservationNotFound(record.product_id, order_id)

    now = now or utc_now()
    _transition(reservation, ReservationTransitions.release_status(reason))

    previous_reserved = record.reserved_stock
    record.reserved_stock -= reservation.quantity

    ledger.append(
        record,
        Movement(
            movement_type=MovementType.RELEASED,
            quantity=reservation.quantity,
            reason=reason,
            order_id=order_id,
            customer_id=reservation.customer_id,
            timestamp=now,
            previous_stock=previous_reserved,
            new_stock=record.reserved_stock,
            notes=notes or f"Reservation released: {reason}",
        ),
    )
    _touch(record, now)
    return reservation


def expire_due(record: InventoryRecord, now: datetime) -> list[Reservation]:
    """Release every active reservation whose expiry is before ``now``."""
    due = [r for r in record.active_reservations if r.expires_at < now]
    for reservation in due:
        release(
            record,
            reservation.order_id,
            EXPIRED_REASON,
            reservation_id=reservation.reservation_id,
            now=now,
            notes="Automatically released expired reservation",
        )
    return due


def add_stock(
    record: InventoryRecord,
    quantity: int,
    reason: str = "Stock replenishment",
    notes: str | None = None,
    now: datetime | None = None,
) -> Movement:
    """Restock: increase total stock."""
    if not _is_whole_number(quantity) or quantity < 1:
        raise InvalidAdjustment(f"Restock quantity must be a positive integer, got {quantity!r}")

    now = now or utc_now()
    previous_total = record.total_stock
    record.total_stock += quantity

    movement = ledger.append(
        record,
        Movement(
            movement_type=MovementType.IN,
            quantity=quantity,
            reason=reason,
            timestamp=now,
            previous_stock=previous_total,
            new_stock=record.total_stock,
            notes=notes,
        ),
    )
    _touch(record, now)
    return movement


def adjust_stock(
    record: InventoryRecord,
    new_total: int,
    reason: str = "Stock adjustment",
    notes: str | None = None,
    now: datetime | None = None,
) -> Movement:
    """Administrative correction: set total stock directly."""
    if not _is_whole_number(new_total) or new_total < 0:
        raise InvalidAdjustment(f"Total stock must be a non-negative integer, got {new_total!r}")

    now = now or utc_now()
    previous_total = record.total_stock
    record.total_stock = new_total

    movement = ledger.append(
        record,
        Movement(
            movement_type=MovementType.ADJUSTED,
            quantity=new_total - previous_total,
            reason=reason,
            timestamp=now,
            previous_stock=previous_total,
            new_stock=record.total_stock,
            notes=notes,
        ),
    )
    _touch(record, now)
    return movement


def process_return(
    record: InventoryRecord,
    order_id: str,
    quantity: int,
    reason: str = "Product return",
    now: datetime | None = None,
) -> Movement:
    """Move returned units from sold stock back into total stock."""
    if not _is_whole_number(quantity) or quantity < 1:
        raise InvalidAdjustment(f"Return quantity must be a positive integer, got {quantity!r}")
    if quantity > record.sold_stock:
        raise InvalidAdjustment(
            f"Cannot return {quantity} units, only {record.sold_stock} sold"
        )

    now = now or utc_now()
    previous_sold = record.sold_stock
    record.sold_stock -= quantity
    record.total_stock += quantity

    movement = ledger.append(
        record,
        Movement(
            movement_type=MovementType.RETURNED,
            quantity=quantity,
            reason=reason,
            order_id=order_id,
            timestamp=now,
            previous_stock=previous_sold,
            new_stock=record.sold_stock,
            notes=f"{quantity} units returned from order {order_id}",
        ),
    )
    _touch(record, now)
    return movement
