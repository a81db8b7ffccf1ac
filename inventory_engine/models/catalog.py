"""Catalog product data consumed when provisioning inventory."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CatalogProduct(BaseModel):
    """Read-only product seed supplied by the catalog service."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(validation_alias=AliasChoices("product_id", "productId", "_id", "id"))
    seller_id: str = Field(validation_alias=AliasChoices("seller_id", "sellerId"))
    name: str | None = None
    stock: int = Field(default=0, ge=0)
    low_stock_alert: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("low_stock_alert", "lowStockAlert"),
    )
    is_active: bool = Field(default=True, validation_alias=AliasChoices("is_active", "isActive"))
