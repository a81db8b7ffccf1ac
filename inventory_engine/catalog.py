"""Catalog service collaborators that seed and receive stock levels."""

from abc import ABC, abstractmethod
from typing import Any, Iterable

import httpx

from inventory_engine.config import Settings, get_settings
from inventory_engine.models.catalog import CatalogProduct
from inventory_engine.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogClient(ABC):
    """Read product seeds from the catalog and push sellable stock back."""

    @abstractmethod
    async def get_product(self, product_id: str) -> CatalogProduct | None:
        """Get one product, or None when the catalog does not know it."""

    @abstractmethod
    async def list_active_products(self) -> list[CatalogProduct]:
        """List every active product."""

    @abstractmethod
    async def update_stock(self, product_id: str, stock: int) -> None:
        """Set the stock the catalog displays for a product."""

    async def close(self) -> None:
        """Release client resources."""


class InMemoryCatalog(CatalogClient):
    """Catalog held in process memory, used for tests and local runs."""

    def __init__(self, products: Iterable[CatalogProduct] = ()):
        self.products: dict[str, CatalogProduct] = {p.product_id: p for p in products}

    def add(self, product: CatalogProduct) -> CatalogProduct:
        self.products[product.product_id] = product
        return product

    async def get_product(self, product_id: str) -> CatalogProduct | None:
        return self.products.get(product_id)

    async def list_active_products(self) -> list[CatalogProduct]:
        return [p for p in self.products.values() if p.is_active]

    async def update_stock(self, product_id: str, stock: int) -> None:
        product = self.products.get(product_id)
        if product is not None:
            self.products[product_id] = product.model_copy(update={"stock": stock})


class HttpCatalogClient(CatalogClient):
    """Catalog service reached over HTTP with a service key."""

    page_size = 100

    def __init__(
        self,
        base_url: str,
        service_key: str | None = None,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"X-Service-Key": service_key} if service_key else {}
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "HttpCatalogClient":
        settings = settings or get_settings()
        if not settings.catalog_url:
            raise ValueError("catalog_url is not configured")
        return cls(
            settings.catalog_url,
            service_key=settings.catalog_service_key,
            timeout=settings.request_timeout,
        )

    async def get_product(self, product_id: str) -> CatalogProduct | None:
        response = await self.client.get(f"/products/{product_id}")
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        return CatalogProduct.model_validate(response.json()["data"])

    async def list_active_products(self) -> list[CatalogProduct]:
        products: list[CatalogProduct] = []
        page = 1

        while True:
            response = await self.client.get(
                "/products",
                params={"status": "active", "page": page, "limit": self.page_size},
            )
            response.raise_for_status()
            body: dict[str, Any] = response.json()

            products.extend(CatalogProduct.model_validate(item) for item in body.get("data", []))

            pages = body.get("pagination", {}).get("pages", 1)
            if page >= pages:
                break
            page += 1

        return [p for p in products if p.is_active]

    async def update_stock(self, product_id: str, stock: int) -> None:
        response = await self.client.put(
            f"/products/{product_id}/stock",
            json={"stock": stock, "notes": "Synced from inventory"},
        )
        response.raise_for_status()
        logger.debug("catalog_stock_updated", product_id=product_id, stock=stock)

    async def close(self) -> None:
        await self.client.aclose()


def create_catalog(settings: Settings | None = None) -> CatalogClient:
    """Build the catalog client configured by ``catalog_url``."""
    settings = settings or get_settings()
    if settings.catalog_url:
        return HttpCatalogClient.from_settings(settings)

    logger.warning("catalog_url_not_configured", fallback="in_memory")
    return InMemoryCatalog()
