"""State management modules."""

from inventory_engine.state.manager import close_store, create_store, get_store
from inventory_engine.state.redis_store import RedisInventoryStore
from inventory_engine.state.repository import InventoryRepository
from inventory_engine.state.store import InventoryStore, MemoryInventoryStore, VersionConflict

__all__ = [
    "InventoryStore",
    "MemoryInventoryStore",
    "RedisInventoryStore",
    "InventoryRepository",
    "VersionConflict",
    "create_store",
    "get_store",
    "close_store",
]
