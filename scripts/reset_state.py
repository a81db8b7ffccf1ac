"""Delete every inventory record from the configured store."""

import asyncio

from inventory_engine.state.manager import create_store


async def reset_all_state() -> None:
    """Clear all inventory records and indexes."""
    print("\n⚠️  WARNING: This will delete ALL inventory records!")
    response = input("Are you sure? (yes/no): ")

    if response.lower() != "yes":
        print("Cancelled.")
        return

    print("\nResetting state...")

    store = create_store()
    await store.connect()
    try:
        await store.clear()
    finally:
        await store.disconnect()

    print("✓ All inventory state cleared\n")


if __name__ == "__main__":
    asyncio.run(reset_all_state())
