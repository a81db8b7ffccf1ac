"""Seed sample inventory records for local development."""

import asyncio

from inventory_engine.catalog import InMemoryCatalog
from inventory_engine.main import build_engine, lifespan
from inventory_engine.models.catalog import CatalogProduct

SAMPLE_PRODUCTS = [
    CatalogProduct(product_id="prod_keyboard", seller_id="seller_acme", name="Mechanical Keyboard", stock=50, low_stock_alert=10),
    CatalogProduct(product_id="prod_mouse", seller_id="seller_acme", name="Wireless Mouse", stock=120, low_stock_alert=15),
    CatalogProduct(product_id="prod_monitor", seller_id="seller_acme", name="27in Monitor", stock=8, low_stock_alert=5),
    CatalogProduct(product_id="prod_headset", seller_id="seller_globex", name="USB Headset", stock=35),
    CatalogProduct(product_id="prod_webcam", seller_id="seller_globex", name="HD Webcam", stock=3, low_stock_alert=5),
    CatalogProduct(product_id="prod_dock", seller_id="seller_globex", name="USB-C Dock", stock=0),
]


async def seed_inventory() -> None:
    """Provision a record for every sample product."""
    print("Seeding inventory...")

    engine = build_engine(catalog=InMemoryCatalog(SAMPLE_PRODUCTS))
    async with lifespan(engine):
        initialized = await engine.admin.initialize_all()

        for product in SAMPLE_PRODUCTS:
            summary = await engine.reservations.get_stock_summary(product.product_id)
            print(
                f"  ✓ {product.name} (stock: {summary.total_stock}, "
                f"low stock: {summary.is_low_stock})"
            )

    print(f"✓ Seeded {initialized} new inventory records\n")


async def main() -> None:
    """Run all seed functions."""
    print("\n" + "=" * 50)
    print("  Seeding Inventory Data")
    print("=" * 50 + "\n")

    await seed_inventory()

    print("=" * 50)
    print("  ✓ All data seeded successfully!")
    print("=" * 50 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
