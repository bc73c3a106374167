"""Storefront error taxonomy.

Services raise these; ``libs.common.error_handler`` renders them as the
standard error envelope with the status code each class declares.
"""

from libs.common.error_handler import ServiceError


class StorefrontError(ServiceError):
    """Base for every storefront failure."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class StoreConfigError(StorefrontError):
    """Stored configuration cannot be interpreted."""

    status_code = 500
    code = "STORE_CONFIG_INVALID"

    @classmethod
    def default_message(cls) -> str:
        return "Store configuration is invalid"


class StoreConfigNotFoundError(StorefrontError):
    status_code = 404
    code = "STORE_CONFIG_NOT_FOUND"

    @classmethod
    def default_message(cls) -> str:
        return "Store config not found"


class ConcurrentUpdateError(StorefrontError):
    """Another request changed the same document first; resubmit."""

    status_code = 409
    code = "CONCURRENT_UPDATE"

    @classmethod
    def default_message(cls) -> str:
        return "The store configuration changed while processing, please retry"


# ---------------------------------------------------------------------------
# Delivery slots
# ---------------------------------------------------------------------------


class SlotError(StorefrontError):
    code = "SLOT_UNAVAILABLE"


class SlotDateNotFoundError(SlotError):
    code = "SLOT_DATE_NOT_FOUND"

    @classmethod
    def default_message(cls) -> str:
        return "No slots available for this date"


class SlotWindowNotFoundError(SlotError):
    code = "SLOT_WINDOW_NOT_FOUND"

    @classmethod
    def default_message(cls) -> str:
        return "Time slot not found"


class SlotCapacityExceededError(SlotError):
    code = "SLOT_CAPACITY_EXCEEDED"

    @classmethod
    def default_message(cls) -> str:
        return "Slot not available or capacity exceeded"


# ---------------------------------------------------------------------------
# Cart and orders
# ---------------------------------------------------------------------------


class ProductNotFoundError(StorefrontError):
    status_code = 404
    code = "PRODUCT_NOT_FOUND"

    @classmethod
    def default_message(cls) -> str:
        return "Product not found or inactive"


class InvalidUnitError(StorefrontError):
    code = "INVALID_UNIT"


class CartNotFoundError(StorefrontError):
    status_code = 404
    code = "CART_NOT_FOUND"

    @classmethod
    def default_message(cls) -> str:
        return "Cart not found"


class CartItemNotFoundError(StorefrontError):
    status_code = 404
    code = "CART_ITEM_NOT_FOUND"

    @classmethod
    def default_message(cls) -> str:
        return "Item not found in cart"


class OrderError(StorefrontError):
    code = "ORDER_ERROR"


class EmptyCartError(OrderError):
    code = "EMPTY_CART"

    @classmethod
    def default_message(cls) -> str:
        return "Cart is empty"


class InactiveProductError(OrderError):
    code = "INACTIVE_PRODUCT"

    @classmethod
    def default_message(cls) -> str:
        return "Some products in cart are no longer available"


class SlotUnavailableError(OrderError):
    code = "SLOT_UNAVAILABLE"

    @classmethod
    def default_message(cls) -> str:
        return "Selected delivery slot is not available"


class InvalidTransitionError(OrderError):
    code = "INVALID_TRANSITION"

    @classmethod
    def default_message(cls) -> str:
        return "Order cannot be cancelled at this stage"


class OrderNotFoundError(OrderError):
    status_code = 404
    code = "ORDER_NOT_FOUND"

    @classmethod
    def default_message(cls) -> str:
        return "Order not found"
