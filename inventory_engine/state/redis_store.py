"""Redis-backed record store shared across engine instances."""

import json
from datetime import datetime
from typing import Any

import redis.asyncio as redis
from redis.exceptions import WatchError

from inventory_engine.config import get_settings
from inventory_engine.state.store import InventoryStore, RecordIndexes, StoredRecord, VersionConflict
from inventory_engine.utils.logging import get_logger

logger = get_logger(__name__)


class RedisInventoryStore(InventoryStore):
    """
    Inventory records in Redis.

    Each record is a JSON envelope ``{version, indexes, record}``. Writes use
    WATCH/MULTI so a record that changed since it was read is never
    overwritten. Secondary indexes are updated in the same transaction:

    - ``{prefix}:products``: every product ID
    - ``{prefix}:seller:{seller_id}``: product IDs per seller
    - ``{prefix}:order:{order_id}``: products an order holds stock on
    - ``{prefix}:expiry``: sorted set of earliest active expiry per product
    """

    def __init__(self, redis_url: str | None = None, key_prefix: str | None = None) -> None:
        settings = get_settings()
        self.redis_client: redis.Redis | None = None
        self.redis_url = redis_url or settings.redis_url
        self.key_prefix = key_prefix or settings.redis_key_prefix

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self.redis_client is None:
            self.redis_client = await redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("redis_connected", url=self.redis_url)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
            logger.info("redis_disconnected")

    def _key(self, *parts: str) -> str:
        return ":".join([self.key_prefix, *parts])

    def _record_key(self, product_id: str) -> str:
        """Generate Redis key for an inventory record."""
        return self._key("record", product_id)

    async def load(self, product_id: str) -> StoredRecord | None:
        if not self.redis_client:
            await self.connect()

        raw = await self.redis_client.get(self._record_key(product_id))
        if not raw:
            return None

        envelope = json.loads(raw)
        return StoredRecord(data=envelope["record"], version=envelope["version"])

    async def save(
        self,
        product_id: str,
        data: dict[str, Any],
        expected_version: int,
        indexes: RecordIndexes,
    ) -> int:
        if not self.redis_client:
            await self.connect()

        key = self._record_key(product_id)
        async with self.redis_client.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                raw = await pipe.get(key)
                current = json.loads(raw) if raw else None
                current_version = current["version"] if current else 0

                if current_version != expected_version:
                    raise VersionConflict(product_id, expected_version, current_version)

                previous = RecordIndexes.from_dict(current["indexes"]) if current else None
                new_version = current_version + 1
                envelope = {
                    "version": new_version,
                    "indexes": indexes.to_dict(),
                    "record": data,
                }

                pipe.multi()
                pipe.set(key, json.dumps(envelope))
                pipe.sadd(self._key("products"), product_id)

                if previous and previous.seller_id != indexes.seller_id:
                    pipe.srem(self._key("seller", previous.seller_id), product_id)
                pipe.sadd(self._key("seller", indexes.seller_id), product_id)

                previous_orders = previous.active_orders if previous else set()
                for order_id in previous_orders - indexes.active_orders:
                    pipe.srem(self._key("order", order_id), product_id)
                for order_id in indexes.active_orders - previous_orders:
                    pipe.sadd(self._key("order", order_id), product_id)

                if indexes.next_expiry is not None:
                    pipe.zadd(self._key("expiry"), {product_id: indexes.next_expiry.timestamp()})
                else:
                    pipe.zrem(self._key("expiry"), product_id)

                await pipe.execute()

            except WatchError as exc:
                raise VersionConflict(product_id, expected_version, None) from exc

        logger.debug("record_saved", product_id=product_id, version=new_version)
        return new_version

    async def list_product_ids(self, seller_id: str | None = None) -> list[str]:
        if not self.redis_client:
            await self.connect()

        key = self._key("seller", seller_id) if seller_id else self._key("products")
        return sorted(await self.redis_client.smembers(key))

    async def due_for_expiry(self, now: datetime) -> list[str]:
        if not self.redis_client:
            await self.connect()

        # "(" makes the upper bound exclusive: expires_at < now
        return await self.redis_client.zrangebyscore(
            self._key("expiry"), "-inf", f"({now.timestamp()}"
        )

    async def products_for_order(self, order_id: str) -> list[str]:
        if not self.redis_client:
            await self.connect()

        return sorted(await self.redis_client.smembers(self._key("order", order_id)))

    async def clear(self) -> None:
        if not self.redis_client:
            await self.connect()

        # SCAN instead of FLUSHDB so other data in the database survives
        keys = [key async for key in self.redis_client.scan_iter(match=self._key("*"))]
        if keys:
            await self.redis_client.delete(*keys)
        logger.info("store_cleared", keys_deleted=len(keys))
