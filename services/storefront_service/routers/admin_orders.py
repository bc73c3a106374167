"""Admin orders router: order management."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.storefront_service.models import OrderStatus, PaymentStatus
from services.storefront_service.schemas import (
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from services.storefront_service.services import orders as order_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-orders"])


@router.get("/admin/orders", response_model=OrderListResponse)
async def list_all_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1),
    status: Optional[OrderStatus] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all orders with optional status filters."""
    return await order_service.list_all_orders(
        db,
        page=page,
        page_size=page_size,
        status=status,
        payment_status=payment_status,
    )


@router.patch("/admin/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    update: OrderStatusUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Set an order's status. Cancelling here also releases its delivery slot."""
    return await order_service.update_order_status(
        db, order_id, update.status, update.admin_notes
    )
