"""Process-wide record store selected by configuration."""

from inventory_engine.config import Settings, get_settings
from inventory_engine.state.redis_store import RedisInventoryStore
from inventory_engine.state.store import InventoryStore, MemoryInventoryStore
from inventory_engine.utils.logging import get_logger

logger = get_logger(__name__)


def create_store(settings: Settings | None = None) -> InventoryStore:
    """Build the store configured by ``storage_backend``."""
    settings = settings or get_settings()

    if settings.storage_backend == "memory":
        return MemoryInventoryStore()
    return RedisInventoryStore(settings.redis_url, settings.redis_key_prefix)


# Global store instance
_store: InventoryStore | None = None


async def get_store() -> InventoryStore:
    """Get the global store instance."""
    global _store
    if _store is None:
        _store = create_store()
        await _store.connect()
        logger.info("store_initialized", backend=type(_store).__name__)
    return _store


async def close_store() -> None:
    """Disconnect and forget the global store instance."""
    global _store
    if _store is not None:
        await _store.disconnect()
        _store = None
