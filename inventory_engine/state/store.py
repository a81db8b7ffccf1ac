"""Versioned record storage with secondary indexes."""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class VersionConflict(Exception):
    """The stored record changed since it was loaded."""

    def __init__(self, product_id: str, expected: int, actual: int | None):
        super().__init__(
            f"Version conflict on {product_id}: expected {expected}, found {actual}"
        )
        self.product_id = product_id
        self.expected = expected
        self.actual = actual


@dataclass
class StoredRecord:
    """Serialized record together with its storage version."""

    data: dict[str, Any]
    version: int


@dataclass
class RecordIndexes:
    """Secondary index entries maintained alongside a record."""

    seller_id: str
    is_active: bool = True
    next_expiry: datetime | None = None
    active_orders: set[str] = field(default_factory=set)

    def to_dict(self) -> dict[str, Any]:
        return {
            "seller_id": self.seller_id,
            "is_active": self.is_active,
            "next_expiry": self.next_expiry.isoformat() if self.next_expiry else None,
            "active_orders": sorted(self.active_orders),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecordIndexes":
        next_expiry = data.get("next_expiry")
        return cls(
            seller_id=data["seller_id"],
            is_active=data.get("is_active", True),
            next_expiry=datetime.fromisoformat(next_expiry) if next_expiry else None,
            active_orders=set(data.get("active_orders", [])),
        )


class InventoryStore(ABC):
    """Keyed record store with optimistic versioning."""

    async def connect(self) -> None:
        """Open backend connections."""

    async def disconnect(self) -> None:
        """Close backend connections."""

    @abstractmethod
    async def load(self, product_id: str) -> StoredRecord | None:
        """Load a record and the version it was stored with."""

    @abstractmethod
    async def save(
        self,
        product_id: str,
        data: dict[str, Any],
        expected_version: int,
        indexes: RecordIndexes,
    ) -> int:
        """
        Write a record if its stored version still equals ``expected_version``.

        A version of 0 means the record must not exist yet.

        Returns:
            The new version

        Raises:
            VersionConflict: the record changed since it was loaded
        """

    @abstractmethod
    async def list_product_ids(self, seller_id: str | None = None) -> list[str]:
        """List stored product IDs, optionally for one seller."""

    @abstractmethod
    async def due_for_expiry(self, now: datetime) -> list[str]:
        """Products holding an active reservation that expired before ``now``."""

    @abstractmethod
    async def products_for_order(self, order_id: str) -> list[str]:
        """Products on which the order holds an active reservation."""

    @abstractmethod
    async def clear(self) -> None:
        """Delete every record and index."""


class MemoryInventoryStore(InventoryStore):
    """In-process store for tests and single-node development."""

    def __init__(self) -> None:
        self._records: dict[str, StoredRecord] = {}
        self._indexes: dict[str, RecordIndexes] = {}

    async def load(self, product_id: str) -> StoredRecord | None:
        stored = self._records.get(product_id)
        if stored is None:
            return None
        return StoredRecord(data=copy.deepcopy(stored.data), version=stored.version)

    async def save(
        self,
        product_id: str,
        data: dict[str, Any],
        expected_version: int,
        indexes: RecordIndexes,
    ) -> int:
        current = self._records.get(product_id)
        current_version = current.version if current else 0
        if current_version != expected_version:
            raise VersionConflict(product_id, expected_version, current_version)

        new_version = current_version + 1
        self._records[product_id] = StoredRecord(data=copy.deepcopy(data), version=new_version)
        self._indexes[product_id] = copy.deepcopy(indexes)
        return new_version

    async def list_product_ids(self, seller_id: str | None = None) -> list[str]:
        return sorted(
            product_id
            for product_id, indexes in self._indexes.items()
            if seller_id is None or indexes.seller_id == seller_id
        )

    async def due_for_expiry(self, now: datetime) -> list[str]:
        due = [
            (indexes.next_expiry, product_id)
            for product_id, indexes in self._indexes.items()
            if indexes.next_expiry is not None and indexes.next_expiry < now
        ]
        return [product_id for _, product_id in sorted(due)]

    async def products_for_order(self, order_id: str) -> list[str]:
        return sorted(
            product_id
            for product_id, indexes in self._indexes.items()
            if order_id in indexes.active_orders
        )

    async def clear(self) -> None:
        self._records.clear()
        self._indexes.clear()
