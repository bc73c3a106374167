"""Customer orders router: checkout, order history and cancellation."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.storefront_service.models import OrderStatus
from services.storefront_service.schemas import (
    OrderCreate,
    OrderListResponse,
    OrderResponse,
)
from services.storefront_service.services import orders as order_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["orders"])


@router.post(
    "/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED
)
async def create_order(
    order_in: OrderCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Place an order from the current cart.

    Prices come from the cart snapshot, the delivery fee and discount from the
    store config. When a delivery slot is given it must have a free seat; the
    seat is taken and the cart emptied in the same transaction as the order.
    """
    if order_in.tenant_id is None:
        order_in.tenant_id = current_user.tenant_id
    return await order_service.create_order(db, current_user.user_id, order_in)


@router.get("/orders", response_model=OrderListResponse)
async def list_my_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1),
    status: Optional[OrderStatus] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List the current user's orders, newest first."""
    return await order_service.list_orders(
        db, current_user.user_id, page=page, page_size=page_size, status=status
    )


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_service.get_order(db, order_id, current_user.user_id)


@router.patch("/orders/{order_id}/cancel", response_model=OrderResponse)
async def cancel_my_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Cancel a pending or confirmed order and give its delivery slot back."""
    return await order_service.cancel_order(db, order_id, current_user.user_id)
