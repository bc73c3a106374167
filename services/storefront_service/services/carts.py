"""Cart operations. One cart per user, created on first access.

Prices are snapshotted when an item is added (``price_at_add``,
``discount_at_add``) and used verbatim at checkout.
"""

import uuid
from decimal import Decimal
from typing import Optional

from libs.common.logging import get_logger
from services.storefront_service.errors import (
    CartItemNotFoundError,
    CartNotFoundError,
    InvalidUnitError,
    ProductNotFoundError,
)
from services.storefront_service.models import Cart, CartUnit, Product
from services.storefront_service.schemas import (
    CartItemCreate,
    CartItemDocument,
    CartItemResponse,
    CartItemUpdate,
    CartResponse,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def cart_items(cart: Cart) -> list[CartItemDocument]:
    return [CartItemDocument.model_validate(item) for item in cart.items or []]


def set_cart_items(cart: Cart, items: list[CartItemDocument]) -> None:
    cart.items = [item.model_dump(mode="json") for item in items]


def line_total(item: CartItemDocument) -> Decimal:
    return (item.price_at_add - item.discount_at_add) * item.quantity


def calculate_cart_totals(items: list[CartItemDocument]) -> tuple[Decimal, int]:
    """Return ``(subtotal, item_count)`` from the snapshotted prices."""
    subtotal = sum((line_total(item) for item in items), Decimal("0"))
    item_count = sum(item.quantity for item in items)
    return subtotal, item_count


async def find_cart(db: AsyncSession, user_id: str) -> Optional[Cart]:
    result = await db.execute(select(Cart).where(Cart.user_id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_cart(
    db: AsyncSession, user_id: str, tenant_id: Optional[str] = None
) -> Cart:
    """Get the user's cart or create an empty one."""
    cart = await find_cart(db, user_id)
    if cart is not None:
        return cart

    cart = Cart(user_id=user_id, tenant_id=tenant_id, items=[])
    db.add(cart)
    await db.commit()
    await db.refresh(cart)
    return cart


async def load_products(
    db: AsyncSession, product_ids: set[uuid.UUID]
) -> dict[uuid.UUID, Product]:
    if not product_ids:
        return {}
    result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    return {product.id: product for product in result.scalars().all()}


async def build_cart_response(db: AsyncSession, cart: Cart) -> CartResponse:
    """Cart with live product names next to the snapshotted prices."""
    items = cart_items(cart)
    products = await load_products(db, {item.product_id for item in items})

    enriched = []
    for item in items:
        product = products.get(item.product_id)
        enriched.append(
            CartItemResponse(
                **item.model_dump(),
                product_name=product.name if product else None,
                is_active=product.is_active if product else False,
                line_total=line_total(item),
            )
        )

    subtotal, item_count = calculate_cart_totals(items)
    return CartResponse(
        id=cart.id,
        user_id=cart.user_id,
        items=enriched,
        subtotal=subtotal,
        item_count=item_count,
        updated_at=cart.updated_at,
    )


async def _get_existing_cart(db: AsyncSession, user_id: str) -> Cart:
    cart = await find_cart(db, user_id)
    if cart is None:
        raise CartNotFoundError()
    return cart


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def add_item(db: AsyncSession, user_id: str, payload: CartItemCreate) -> Cart:
    """Add a product, merging with an existing line of the same unit."""
    product = await db.get(Product, payload.product_id)
    if product is None or not product.is_active:
        raise ProductNotFoundError()

    if payload.unit not in product.available_units:
        units = ", ".join(unit.value for unit in product.available_units)
        raise InvalidUnitError(f"Product only available in: {units}")

    cart = await get_or_create_cart(db, user_id)
    items = cart_items(cart)

    for item in items:
        if item.product_id == payload.product_id and item.unit == payload.unit:
            item.quantity += payload.quantity
            break
    else:
        items.append(
            CartItemDocument(
                product_id=product.id,
                quantity=payload.quantity,
                unit=payload.unit,
                price_at_add=product.price,
                discount_at_add=product.discount or Decimal("0"),
            )
        )

    set_cart_items(cart, items)
    await db.commit()
    await db.refresh(cart)
    return cart


async def update_item(
    db: AsyncSession, user_id: str, product_id: uuid.UUID, payload: CartItemUpdate
) -> Cart:
    cart = await _get_existing_cart(db, user_id)
    items = cart_items(cart)

    for item in items:
        if item.product_id == product_id and item.unit == payload.unit:
            item.quantity = payload.quantity
            break
    else:
        raise CartItemNotFoundError()

    set_cart_items(cart, items)
    await db.commit()
    await db.refresh(cart)
    return cart


async def remove_item(
    db: AsyncSession,
    user_id: str,
    product_id: uuid.UUID,
    unit: Optional[CartUnit] = None,
) -> Cart:
    """Drop the product's line for ``unit``, or every line of it when no unit is given."""
    cart = await _get_existing_cart(db, user_id)
    items = [
        item
        for item in cart_items(cart)
        if not (item.product_id == product_id and (unit is None or item.unit == unit))
    ]

    set_cart_items(cart, items)
    await db.commit()
    await db.refresh(cart)
    return cart


async def clear_cart(db: AsyncSession, user_id: str) -> Cart:
    cart = await _get_existing_cart(db, user_id)
    cart.items = []
    await db.commit()
    await db.refresh(cart)
    logger.info("Cleared cart for user %s", user_id)
    return cart
