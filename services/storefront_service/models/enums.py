"""Enum definitions for storefront models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class ProductUnit(str, enum.Enum):
    BOX = "box"
    DOZEN = "dozen"
    BOTH = "both"


class CartUnit(str, enum.Enum):
    BOX = "box"
    DOZEN = "dozen"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def can_cancel(self) -> bool:
        """Customers may cancel only before the order is being processed."""
        return self in (OrderStatus.PENDING, OrderStatus.CONFIRMED)


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    COD = "cod"
    ONLINE = "online"
    UPI = "upi"
