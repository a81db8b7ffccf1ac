"""Availability calculator: derives sellable stock flags from raw counters."""

from typing import NamedTuple


class Availability(NamedTuple):
    """Derived availability of one inventory record."""

    available_stock: int
    is_out_of_stock: bool
    is_low_stock: bool


def recompute(total: int, reserved: int, sold: int, threshold: int) -> Availability:
    """
    Compute available stock and its status flags.

    Available stock never goes negative, even when an administrative
    adjustment drops total stock below what is already reserved or sold.

    Args:
        total: Total stock on the record
        reserved: Stock held by active reservations
        sold: Stock converted to sales
        threshold: Low stock alert threshold

    Returns:
        Availability with the derived values
    """
    available = max(0, total - reserved - sold)
    return Availability(
        available_stock=available,
        is_out_of_stock=available == 0,
        is_low_stock=0 < available <= threshold,
    )
