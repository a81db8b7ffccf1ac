"""Error kinds raised by the inventory engine."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from inventory_engine.models.results import BulkReservationResult


class InventoryError(Exception):
    """Base class for all inventory engine errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    @property
    def kind(self) -> str:
        return type(self).__name__


class ProductNotFound(InventoryError):
    """No catalog product or inventory record exists for the product."""

    def __init__(self, product_id: str, message: str | None = None):
        super().__init__(message or f"Product {product_id} not found", product_id=product_id)
        self.product_id = product_id


class InsufficientStock(InventoryError):
    """Requested quantity exceeds available stock at reserve time."""

    def __init__(self, product_id: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock. Available: {available}, Requested: {requested}",
            product_id=product_id,
            available=available,
            requested=requested,
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class ReservationNotFound(InventoryError):
    """The confirm/release target is absent or no longer active."""

    def __init__(self, product_id: str, order_id: str):
        super().__init__(
            f"Active reservation for order {order_id} not found on product {product_id}",
            product_id=product_id,
            order_id=order_id,
        )
        self.product_id = product_id
        self.order_id = order_id


class InvalidAdjustment(InventoryError):
    """A stock target or delta is negative, zero where disallowed, or not an integer."""


class InvalidQuantity(InventoryError):
    """A reservation quantity is not a positive integer."""


class ConcurrencyConflict(InventoryError):
    """A record kept changing underneath writes until the retry budget ran out."""

    def __init__(self, product_id: str, attempts: int):
        super().__init__(
            f"Record {product_id} changed concurrently {attempts} times",
            product_id=product_id,
            attempts=attempts,
        )
        self.product_id = product_id
        self.attempts = attempts


class PartialReservationFailure(InventoryError):
    """A bulk reservation had at least one item fail and was compensated."""

    def __init__(self, result: "BulkReservationResult"):
        failed = ", ".join(item.product_id for item in result.failed)
        super().__init__(
            f"Reservation for order {result.order_id} failed for: {failed}",
            order_id=result.order_id,
        )
        self.result = result
