"""Storefront commerce models: carts and orders.

Line items, addresses and the booked delivery slot are embedded documents
(JSON columns) validated by the schemas in ``services.storefront_service.schemas``.
"""

import random
import time
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.db.base import Base, JSONDocument
from services.storefront_service.models.enums import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    enum_values,
)
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

# ============================================================================
# CART
# ============================================================================


class Cart(Base):
    """One cart per user; emptied (not deleted) when an order is placed."""

    __tablename__ = "storefront_carts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    tenant_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # [{product_id, quantity, unit, price_at_add, discount_at_add}]
    items: Mapped[list] = mapped_column(JSONDocument, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<Cart user={self.user_id} items={len(self.items or [])}>"


# ============================================================================
# ORDER
# ============================================================================


class Order(Base):
    """Orders. Amounts are captured at creation and never recomputed."""

    __tablename__ = "storefront_orders"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    order_number: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    tenant_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # [{product_id, product_name, quantity, unit, price, discount, total}]
    items: Mapped[list] = mapped_column(JSONDocument, nullable=False)

    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # {discount_type, value, min_cart_value, priority, max_discount_amount}
    applied_discount_rule: Mapped[Optional[dict]] = mapped_column(
        JSONDocument, nullable=True
    )

    delivery_address: Mapped[dict] = mapped_column(JSONDocument, nullable=False)
    # {date, start_time, end_time}
    delivery_slot: Mapped[Optional[dict]] = mapped_column(JSONDocument, nullable=True)

    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="storefront_order_status_enum",
        ),
        default=OrderStatus.PENDING,
        server_default="pending",
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(
            PaymentStatus,
            values_callable=enum_values,
            name="storefront_payment_status_enum",
        ),
        default=PaymentStatus.PENDING,
        server_default="pending",
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(
            PaymentMethod,
            values_callable=enum_values,
            name="storefront_payment_method_enum",
        ),
        default=PaymentMethod.COD,
        server_default="cod",
    )

    notes: Mapped[str] = mapped_column(Text, default="", server_default="")
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    delivered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        Index("ix_storefront_orders_user_created", "user_id", "created_at"),
        Index("ix_storefront_orders_status", "status"),
    )

    @staticmethod
    def generate_order_number() -> str:
        """Generate an order number like ORD1734259200000042."""
        prefix = get_settings().ORDER_NUMBER_PREFIX
        timestamp_ms = int(time.time() * 1000)
        return f"{prefix}{timestamp_ms}{random.randint(0, 999):03d}"

    def __repr__(self):
        return f"<Order {self.order_number} status={self.status}>"
