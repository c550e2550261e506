"""
Database seeding script for a fresh install.

Creates the first ADMIN (sign-up only ever makes regular users) and a
small shipping method catalogue. Run with ``python -m postal.seed_users``
after the database is reachable.
"""

import asyncio
import os

from postal.app.db.session import AsyncSessionLocal, Base, engine
from postal.app.models.shipment import Shipment  # noqa: F401
from postal.app.services.account_service import AccountService
from postal.app.services.shipping_method_service import ShippingMethodService
from postal.app.services.user_service import UserService

ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "admin123")

DEFAULT_METHODS = [
    ("Standard", 5.0),
    ("Express", 12.5),
    ("Overnight", 25.0),
]


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        accounts = AccountService(db)
        if await accounts.get_by_email(ADMIN_EMAIL) is None:
            user = await accounts.sign_up(ADMIN_EMAIL, ADMIN_PASSWORD)
            await UserService(db).update(user.id, {"priv": True})
            print(f"✅ Created ADMIN user ({ADMIN_EMAIL})")
        else:
            print("ℹ️  ADMIN user already exists, skipping")

        methods = ShippingMethodService(db)
        if not await methods.list_all():
            for name, cost in DEFAULT_METHODS:
                await methods.create({"name": name, "cost": cost})
            print(f"✅ Created {len(DEFAULT_METHODS)} shipping methods")
        else:
            print("ℹ️  Shipping methods already present, skipping")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
