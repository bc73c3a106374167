"""Store config router: configuration, price estimates and slot pre-booking."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.rate_limit import public_limit
from libs.db.session import get_async_db
from services.storefront_service.schemas import (
    PricingRequest,
    PricingResponse,
    ReserveSlotRequest,
    SlotReservationResponse,
    StoreConfigResponse,
    StoreConfigUpdate,
)
from services.storefront_service.services.pricing import compute_totals
from services.storefront_service.services.store_config import (
    get_or_create_config,
    load_document,
    reserve_slot_atomic,
    update_store_config,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["storeconfig"])


@router.get("/storeconfig", response_model=StoreConfigResponse)
async def get_store_config(
    tenant_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_async_db),
):
    """Get the store configuration, creating the default one on first access."""
    config = await get_or_create_config(db, tenant_id)
    await db.commit()
    return config


@router.put("/storeconfig", response_model=StoreConfigResponse)
async def replace_store_config(
    update: StoreConfigUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Replace configuration sections (admin). Omitted sections are kept."""
    return await update_store_config(db, update)


@router.post("/storeconfig/compute", response_model=PricingResponse)
@public_limit
async def compute_cart_total(
    request: Request,
    payload: PricingRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Estimate delivery fee, discount and amount payable for a cart value."""
    config = await get_or_create_config(db, payload.tenant_id)
    document = load_document(config)
    await db.commit()

    result = compute_totals(payload.cart_value, payload.distance_km, document)
    return PricingResponse(
        cart_value=result.cart_value,
        delivery_fee=result.delivery_fee,
        discount_amount=result.discount_amount,
        final_amount=result.final_amount,
        applied_discount_rule=result.applied_rule_summary(),
    )


@router.post("/storeconfig/reserve-slot", response_model=SlotReservationResponse)
@public_limit
async def reserve_delivery_slot(
    request: Request,
    payload: ReserveSlotRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Book one seat in a delivery window outside of checkout."""
    window = await reserve_slot_atomic(
        db, payload.tenant_id, payload.date, payload.start_time
    )
    return SlotReservationResponse(
        message="Slot reserved successfully",
        date=payload.date,
        start_time=window.start_time,
        end_time=window.end_time,
        capacity=window.capacity,
        booked=window.booked,
    )
