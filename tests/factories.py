"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    product = ProductFactory.create(price=Decimal("80"))
    db_session.add(product)
    await db_session.commit()
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def slot_day(days_ahead: int = 1) -> datetime:
    """Midnight UTC ``days_ahead`` days from today."""
    today = _now().replace(hour=0, minute=0, second=0, microsecond=0)
    return today + timedelta(days=days_ahead)


def window(start="09:00", end="11:00", capacity=10, booked=0) -> dict:
    return {
        "start_time": start,
        "end_time": end,
        "capacity": capacity,
        "booked": booked,
    }


def slot_group(day: datetime, *windows: dict) -> dict:
    return {"date": day.isoformat(), "slots": list(windows) or [window()]}


def flat_tier(min_cart_value, value, priority=0, max_discount_amount=None) -> dict:
    return {
        "discount_type": "flat",
        "min_cart_value": str(min_cart_value),
        "value": str(value),
        "priority": priority,
        "max_discount_amount": (
            str(max_discount_amount) if max_discount_amount is not None else None
        ),
    }


def percentage_tier(min_cart_value, value, priority=0, max_discount_amount=None) -> dict:
    tier = flat_tier(min_cart_value, value, priority, max_discount_amount)
    tier["discount_type"] = "percentage"
    return tier


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ProductFactory:
    @staticmethod
    def create(**overrides):
        from services.storefront_service.models import Product, ProductUnit

        defaults = {
            "id": _uuid(),
            "name": f"Test Product {uuid.uuid4().hex[:6]}",
            "description": "",
            "mrp": Decimal("120"),
            "price": Decimal("100"),
            "unit": ProductUnit.BOTH,
            "is_active": True,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        product = Product(**defaults)
        product.recalculate_discount()
        return product


# ---------------------------------------------------------------------------
# Store config
# ---------------------------------------------------------------------------


class StoreConfigFactory:
    @staticmethod
    def create(**overrides):
        from services.storefront_service.models import StoreConfig

        defaults = {
            "id": _uuid(),
            "tenant_id": None,
            "store_address": {"line1": "12 MG Road", "city": "Pune"},
            "delivery_fee": {"type": "flat", "base_fee": "50"},
            "cart_discounts": [flat_tier(1000, 100, priority=10)],
            "delivery_slots": [slot_group(slot_day(1), window(capacity=2))],
            "is_delivery_enabled": True,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return StoreConfig(**defaults)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


class CartFactory:
    @staticmethod
    def create(user_id="customer-1", products=(), quantity=1, unit="box", **overrides):
        """Cart holding ``quantity`` of each product, priced at its current price."""
        from services.storefront_service.models import Cart

        items = [
            {
                "product_id": str(product.id),
                "quantity": quantity,
                "unit": unit,
                "price_at_add": str(product.price),
                "discount_at_add": str(product.discount),
            }
            for product in products
        ]
        defaults = {
            "id": _uuid(),
            "user_id": user_id,
            "tenant_id": None,
            "items": items,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Cart(**defaults)
