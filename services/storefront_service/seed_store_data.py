"""Seed script for storefront test data.

Creates the default store config (two discount tiers), delivery slots for the
next 30 days and a few sample products so the checkout flow can be tried
end-to-end. Safe to run repeatedly: existing slot dates and catalogs are left
alone.

Usage:
    python -m services.storefront_service.seed_store_data
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

from libs.common.datetime_utils import utc_midnight, utc_now
from libs.db.config import AsyncSessionLocal
from services.storefront_service.models import Category, Product, ProductUnit
from services.storefront_service.schemas import (
    DeliverySlotGroup,
    FlatDiscountTier,
    PercentageDiscountTier,
    StoreAddress,
    TimeWindow,
)
from services.storefront_service.services.store_config import (
    apply_document,
    get_or_create_config,
    load_document,
)
from sqlalchemy import func, select

SLOT_DAYS = 30
SLOT_WINDOWS = [
    ("09:00", "11:00"),
    ("11:00", "13:00"),
    ("14:00", "16:00"),
    ("16:00", "18:00"),
]
SLOT_CAPACITY = 10


def build_slot_groups(existing: list[DeliverySlotGroup]) -> list[DeliverySlotGroup]:
    """Append a group for every upcoming day that has none yet."""
    taken = {utc_midnight(group.date) for group in existing}

    today = utc_midnight(utc_now())
    groups = list(existing)
    for offset in range(SLOT_DAYS):
        day = today + timedelta(days=offset)
        if day in taken:
            continue
        groups.append(
            DeliverySlotGroup(
                date=day,
                slots=[
                    TimeWindow(start_time=start, end_time=end, capacity=SLOT_CAPACITY)
                    for start, end in SLOT_WINDOWS
                ],
            )
        )
    return groups


async def seed_store_config(db) -> None:
    config = await get_or_create_config(db, None, for_update=True)
    document = load_document(config)

    if len(document.cart_discounts) < 2:
        document.store_address = StoreAddress(
            line1="12 MG Road",
            line2="Near City Center",
            city="Pune",
            state="Maharashtra",
            postal_code="411001",
            country="India",
            latitude=18.5204,
            longitude=73.8567,
        )
        document.cart_discounts = [
            FlatDiscountTier(
                discount_type="flat",
                min_cart_value=Decimal("1000"),
                value=Decimal("100"),
                priority=10,
                max_discount_amount=Decimal("100"),
            ),
            PercentageDiscountTier(
                discount_type="percentage",
                min_cart_value=Decimal("2000"),
                value=Decimal("10"),
                priority=20,
                max_discount_amount=Decimal("500"),
            ),
        ]

    before = len(document.delivery_slots)
    document.delivery_slots = build_slot_groups(document.delivery_slots)
    apply_document(config, document)
    await db.commit()

    print(
        f"Store config ready: {len(document.cart_discounts)} discount tiers, "
        f"{len(document.delivery_slots) - before} new slot dates."
    )


async def seed_catalog(db) -> None:
    count = await db.scalar(select(func.count()).select_from(Product))
    if count:
        print(f"Catalog already has {count} products. Skipping.")
        return

    eggs = await db.scalar(select(Category).where(Category.slug == "eggs"))
    if eggs is None:
        eggs = Category(
            name="Eggs", slug="eggs", description="Farm fresh eggs", sort_order=1
        )
        db.add(eggs)
        await db.flush()

    samples = [
        ("Brown Eggs", Decimal("120"), Decimal("99"), ProductUnit.DOZEN),
        ("White Eggs Tray", Decimal("450"), Decimal("420"), ProductUnit.BOX),
        ("Country Eggs", Decimal("180"), Decimal("160"), ProductUnit.BOTH),
    ]
    for name, mrp, price, unit in samples:
        product = Product(
            name=name,
            mrp=mrp,
            price=price,
            unit=unit,
            category_id=eggs.id,
        )
        product.recalculate_discount()
        db.add(product)

    await db.commit()
    print(f"Created {len(samples)} products.")


async def seed_store_data():
    async with AsyncSessionLocal() as db:
        print("Seeding storefront data...")
        await seed_store_config(db)
        await seed_catalog(db)
        print("Done.")


if __name__ == "__main__":
    asyncio.run(seed_store_data())
