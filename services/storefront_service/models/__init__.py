"""Storefront models package."""

from services.storefront_service.models.catalog import Category, Product
from services.storefront_service.models.commerce import Cart, Order
from services.storefront_service.models.enums import (
    CartUnit,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductUnit,
)
from services.storefront_service.models.store_config import StoreConfig

__all__ = [
    "Cart",
    "CartUnit",
    "Category",
    "Order",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "ProductUnit",
    "StoreConfig",
]
