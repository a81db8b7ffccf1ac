"""Movement ledger: the append-only audit trail of stock-affecting events."""

import math
from typing import TYPE_CHECKING

from inventory_engine.exceptions import ProductNotFound
from inventory_engine.models.results import MovementPage, Pagination

if TYPE_CHECKING:
    from inventory_engine.models.inventory import InventoryRecord, Movement, MovementType
    from inventory_engine.state.repository import InventoryRepository


def append(record: "InventoryRecord", movement: "Movement") -> "Movement":
    """Add one movement to a record's history. Prior entries are never touched."""
    record.movements.append(movement)
    return movement


def paginate_movements(
    record: "InventoryRecord",
    movement_type: "MovementType | str | None" = None,
    page: int = 1,
    limit: int = 20,
) -> MovementPage:
    """Return one page of a record's movements, newest first."""
    page = max(1, int(page))
    limit = max(1, int(limit))

    movements = list(record.movements)
    if movement_type and movement_type != "all":
        movements = [m for m in movements if m.movement_type == movement_type]

    # Stable sort keeps append order for movements sharing a timestamp
    movements = sorted(
        enumerate(movements),
        key=lambda pair: (pair[1].timestamp, pair[0]),
        reverse=True,
    )
    total = len(movements)
    start = (page - 1) * limit

    return MovementPage(
        product_id=record.product_id,
        movements=[m for _, m in movements[start : start + limit]],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit),
        ),
        current_stock=record.get_stock_summary(),
    )


class MovementLedger:
    """Read side of the movement history."""

    def __init__(self, repository: "InventoryRepository"):
        self.repository = repository

    async def list(
        self,
        product_id: str,
        movement_type: "MovementType | str | None" = None,
        page: int = 1,
        limit: int = 20,
    ) -> MovementPage:
        """
        List movements for a product.

        Args:
            product_id: Product whose history to read
            movement_type: Optional type filter ('all' disables filtering)
            page: 1-based page number
            limit: Page size

        Returns:
            Newest-first page of movements with the current stock summary
        """
        record = await self.repository.get(product_id)
        if record is None:
            raise ProductNotFound(product_id, "Inventory not found")

        return paginate_movements(record, movement_type, page, limit)
