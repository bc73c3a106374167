"""Order placement, cancellation and status changes.

``create_order`` is the one multi-step flow of the storefront:

1. reject an empty cart, then carts holding inactive products
2. snapshot the cart lines into order items and total them
3. price the order against the tenant's store config
4. check the requested delivery slot (row-locked)
5. write the order, then take the slot seat and empty the cart
6. commit once

Any failure rolls the whole session back, so no order, seat or cart change
survives a failed checkout.
"""

import math
import uuid
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.storefront_service.errors import (
    EmptyCartError,
    InactiveProductError,
    InvalidTransitionError,
    OrderNotFoundError,
    SlotCapacityExceededError,
    SlotDateNotFoundError,
    SlotError,
    SlotUnavailableError,
    SlotWindowNotFoundError,
    StorefrontError,
)
from services.storefront_service.models import (
    Order,
    OrderStatus,
    PaymentStatus,
    Product,
)
from services.storefront_service.schemas import (
    CartItemDocument,
    OrderCreate,
    OrderDeliverySlot,
    OrderItemDocument,
)
from services.storefront_service.services.carts import (
    cart_items,
    find_cart,
    line_total,
    load_products,
)
from services.storefront_service.services.pricing import compute_totals
from services.storefront_service.services.slots import (
    check_slot_available,
    normalize_slot_date,
)
from services.storefront_service.services.store_config import (
    commit_config_write,
    get_or_create_config,
    load_document,
    release_slot_atomic,
    save_slots,
)
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

SLOT_UNAVAILABLE_MESSAGES = {
    SlotDateNotFoundError: "Selected delivery date not available",
    SlotWindowNotFoundError: "Selected time slot not found",
    SlotCapacityExceededError: "Selected time slot is full",
}

CUSTOMER_PAGE_SIZE = (10, 50)
ADMIN_PAGE_SIZE = (10, 100)


def clamp_page(page: int, page_size: int, bounds: tuple[int, int]) -> tuple[int, int]:
    low, high = bounds
    return max(1, page), min(high, max(low, page_size))


def build_order_items(
    items: list[CartItemDocument], products: dict[uuid.UUID, Product]
) -> tuple[list[OrderItemDocument], Decimal]:
    """Copy cart lines into order items; names are taken from the live product."""
    order_items = []
    subtotal = Decimal("0")
    for item in items:
        total = line_total(item)
        subtotal += total
        order_items.append(
            OrderItemDocument(
                product_id=item.product_id,
                product_name=products[item.product_id].name,
                quantity=item.quantity,
                unit=item.unit,
                price=item.price_at_add,
                discount=item.discount_at_add,
                total=total,
            )
        )
    return order_items, subtotal


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


async def create_order(db: AsyncSession, user_id: str, payload: OrderCreate) -> Order:
    """Turn the user's cart into an order. See the module docstring for the steps."""
    try:
        order = await _assemble_order(db, user_id, payload)
        await commit_config_write(db)
    except Exception:
        await db.rollback()
        raise

    await db.refresh(order)
    logger.info(
        "Order %s placed by %s: subtotal=%s discount=%s fee=%s total=%s slot=%s",
        order.order_number,
        user_id,
        order.subtotal,
        order.discount_amount,
        order.delivery_fee,
        order.total_amount,
        order.delivery_slot,
    )
    return order


async def _assemble_order(db: AsyncSession, user_id: str, payload: OrderCreate) -> Order:
    cart = await find_cart(db, user_id)
    items = cart_items(cart) if cart is not None else []
    if not items:
        raise EmptyCartError()

    products = await load_products(db, {item.product_id for item in items})
    if any(
        item.product_id not in products or not products[item.product_id].is_active
        for item in items
    ):
        raise InactiveProductError()

    order_items, subtotal = build_order_items(items, products)

    config = await get_or_create_config(db, payload.tenant_id, for_update=True)
    document = load_document(config)
    pricing = compute_totals(subtotal, payload.distance_km, document)

    window = None
    delivery_slot = None
    if payload.delivery_slot is not None:
        requested = payload.delivery_slot
        try:
            window = check_slot_available(
                document.delivery_slots, requested.date, requested.start_time
            )
        except SlotError as exc:
            raise SlotUnavailableError(SLOT_UNAVAILABLE_MESSAGES.get(type(exc))) from exc
        delivery_slot = OrderDeliverySlot(
            date=normalize_slot_date(requested.date),
            start_time=requested.start_time,
            end_time=window.end_time,
        )

    applied_rule = pricing.applied_rule_summary()
    order = Order(
        order_number=Order.generate_order_number(),
        user_id=user_id,
        tenant_id=payload.tenant_id,
        items=[item.model_dump(mode="json") for item in order_items],
        subtotal=subtotal,
        delivery_fee=pricing.delivery_fee,
        discount_amount=pricing.discount_amount,
        total_amount=pricing.final_amount,
        applied_discount_rule=applied_rule.model_dump(mode="json") if applied_rule else None,
        delivery_address=payload.delivery_address.model_dump(mode="json"),
        delivery_slot=delivery_slot.model_dump(mode="json") if delivery_slot else None,
        status=OrderStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        payment_method=payload.payment_method,
        notes=payload.notes,
    )
    db.add(order)
    await db.flush()

    # Only once the order row exists: take the seat and empty the cart
    if window is not None:
        window.booked += 1
        save_slots(config, document)
    cart.items = []

    return order


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_order(db: AsyncSession, order_id: uuid.UUID, user_id: str) -> Order:
    result = await db.execute(
        select(Order).where(Order.id == order_id, Order.user_id == user_id)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFoundError()
    return order


async def get_order_admin(db: AsyncSession, order_id: uuid.UUID) -> Order:
    order = await db.get(Order, order_id)
    if order is None:
        raise OrderNotFoundError()
    return order


async def _paginate(db: AsyncSession, filters: list, page: int, page_size: int):
    total = await db.scalar(select(func.count()).select_from(Order).where(*filters))
    result = await db.execute(
        select(Order)
        .where(*filters)
        .order_by(Order.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    orders = list(result.scalars().all())
    total = total or 0
    return {
        "items": orders,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": math.ceil(total / page_size),
    }


async def list_orders(
    db: AsyncSession,
    user_id: str,
    *,
    page: int = 1,
    page_size: int = 10,
    status: Optional[OrderStatus] = None,
) -> dict:
    """The user's orders, newest first."""
    page, page_size = clamp_page(page, page_size, CUSTOMER_PAGE_SIZE)
    filters = [Order.user_id == user_id]
    if status is not None:
        filters.append(Order.status == status)
    return await _paginate(db, filters, page, page_size)


async def list_all_orders(
    db: AsyncSession,
    *,
    page: int = 1,
    page_size: int = 20,
    status: Optional[OrderStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
) -> dict:
    page, page_size = clamp_page(page, page_size, ADMIN_PAGE_SIZE)
    filters = []
    if status is not None:
        filters.append(Order.status == status)
    if payment_status is not None:
        filters.append(Order.payment_status == payment_status)
    return await _paginate(db, filters, page, page_size)


# ---------------------------------------------------------------------------
# Status changes
# ---------------------------------------------------------------------------


async def _release_order_slot(db: AsyncSession, order: Order) -> None:
    """Give the order's seat back. Never fails the caller."""
    if not order.delivery_slot:
        return
    slot = dict(order.delivery_slot)
    order_number = order.order_number
    try:
        await release_slot_atomic(db, order.tenant_id, slot["date"], slot["start_time"])
    except (StorefrontError, SQLAlchemyError) as exc:
        # The order change is already committed; a lost seat is only logged
        await db.rollback()
        logger.warning(
            "Could not release slot %s %s for order %s: %s",
            slot.get("date"),
            slot.get("start_time"),
            order_number,
            exc,
        )


async def cancel_order(db: AsyncSession, order_id: uuid.UUID, user_id: str) -> Order:
    """Customer cancellation, allowed while the order is pending or confirmed."""
    order = await get_order(db, order_id, user_id)
    if not order.status.can_cancel:
        raise InvalidTransitionError()

    order.status = OrderStatus.CANCELLED
    order.cancelled_at = utc_now()
    await db.commit()

    await _release_order_slot(db, order)
    await db.refresh(order)
    logger.info("Order %s cancelled by %s", order.order_number, user_id)
    return order


async def update_order_status(
    db: AsyncSession,
    order_id: uuid.UUID,
    status: OrderStatus,
    admin_notes: Optional[str] = None,
) -> Order:
    """Admin status change. Transitions are not validated here."""
    order = await get_order_admin(db, order_id)
    old_status = order.status

    order.status = status
    if admin_notes:
        order.admin_notes = admin_notes
    if status == OrderStatus.DELIVERED:
        order.delivered_at = utc_now()
    elif status == OrderStatus.CANCELLED and old_status != OrderStatus.CANCELLED:
        order.cancelled_at = utc_now()
    await db.commit()

    if status == OrderStatus.CANCELLED and old_status != OrderStatus.CANCELLED:
        await _release_order_slot(db, order)

    await db.refresh(order)
    logger.info(
        "Order %s status %s -> %s",
        order.order_number,
        old_status.value,
        status.value,
    )
    return order
