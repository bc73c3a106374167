"""Cart router: the signed-in user's cart."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.storefront_service.models import CartUnit
from services.storefront_service.schemas import (
    CartItemCreate,
    CartItemUpdate,
    CartResponse,
)
from services.storefront_service.services import carts
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["cart"])


@router.get("/cart", response_model=CartResponse)
async def get_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get the current cart, creating an empty one if needed."""
    cart = await carts.get_or_create_cart(db, current_user.user_id, current_user.tenant_id)
    return await carts.build_cart_response(db, cart)


@router.post("/cart/items", response_model=CartResponse)
async def add_to_cart(
    item: CartItemCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Add a product to the cart at its current price."""
    cart = await carts.add_item(db, current_user.user_id, item)
    return await carts.build_cart_response(db, cart)


@router.put("/cart/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: uuid.UUID,
    update: CartItemUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Set the quantity of a cart line."""
    cart = await carts.update_item(db, current_user.user_id, product_id, update)
    return await carts.build_cart_response(db, cart)


@router.delete("/cart/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(
    product_id: uuid.UUID,
    unit: Optional[CartUnit] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Remove a product from the cart (only the given unit, if one is passed)."""
    cart = await carts.remove_item(db, current_user.user_id, product_id, unit)
    return await carts.build_cart_response(db, cart)


@router.delete("/cart", response_model=CartResponse)
async def clear_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    cart = await carts.clear_cart(db, current_user.user_id)
    return await carts.build_cart_response(db, cart)
