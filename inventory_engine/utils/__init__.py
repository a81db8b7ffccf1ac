"""Utility modules."""

from inventory_engine.utils.logging import InventoryLogger, get_logger, setup_logging
from inventory_engine.utils.tracing import BatchTracer

__all__ = ["setup_logging", "get_logger", "InventoryLogger", "BatchTracer"]
