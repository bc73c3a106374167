"""Catalog router: public product listing and admin product management."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.storefront_service.errors import ProductNotFoundError
from services.storefront_service.models import Product
from services.storefront_service.schemas import (
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["catalog"])
logger = get_logger(__name__)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("/products", response_model=list[ProductResponse])
async def list_products(
    category_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None, description="Search in product name"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    """List active products, newest first."""
    query = select(Product).where(Product.is_active.is_(True))
    if category_id:
        query = query.where(Product.category_id == category_id)
    if search:
        query = query.where(Product.name.ilike(f"%{search}%"))

    query = query.order_by(Product.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    product = await db.get(Product, product_id)
    if product is None or not product.is_active:
        raise ProductNotFoundError()
    return product


# ============================================================================
# ADMIN
# ============================================================================


@router.post(
    "/admin/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    product_in: ProductCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a product. The discount is derived from MRP and price."""
    product = Product(**product_in.model_dump())
    product.recalculate_discount()
    db.add(product)
    await db.commit()
    await db.refresh(product)
    logger.info("Product %s created by %s", product.id, current_user.user_id)
    return product


@router.patch("/admin/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    product_in: ProductUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update a product, including inactive ones."""
    product = await db.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError("Product not found")

    for field, value in product_in.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(product, field, value)
    product.recalculate_discount()

    await db.commit()
    await db.refresh(product)
    return product
