"""Storefront service routers package."""

from services.storefront_service.routers.admin_orders import router as admin_orders_router
from services.storefront_service.routers.cart import router as cart_router
from services.storefront_service.routers.catalog import router as catalog_router
from services.storefront_service.routers.orders import router as orders_router
from services.storefront_service.routers.store_config import (
    router as store_config_router,
)

__all__ = [
    "admin_orders_router",
    "cart_router",
    "catalog_router",
    "orders_router",
    "store_config_router",
]
