"""Pydantic schemas for the storefront service.

The store configuration, cart and order rows keep their nested collections as
JSON documents; the ``*Document`` models below define and validate those
shapes on the way in and out of the database.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from libs.common.datetime_utils import utc_midnight
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)
from services.storefront_service.models import (
    CartUnit,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductUnit,
)

Money = Annotated[Decimal, Field(ge=0)]

# Calendar day of a delivery slot, truncated to midnight UTC
SlotDate = Annotated[datetime, BeforeValidator(utc_midnight)]


# ============================================================================
# STORE CONFIG DOCUMENT
# ============================================================================


class StoreAddress(BaseModel):
    line1: str = ""
    line2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "India"
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class FlatDeliveryFee(BaseModel):
    type: Literal["flat"] = "flat"
    base_fee: Money = Decimal("0")


class PerKmDeliveryFee(BaseModel):
    type: Literal["per_km"]
    base_fee: Money = Decimal("0")
    rate: Money = Decimal("0")


DeliveryFeePolicy = Annotated[
    Union[FlatDeliveryFee, PerKmDeliveryFee], Field(discriminator="type")
]


class _DiscountTierBase(BaseModel):
    min_cart_value: Money
    value: Money
    max_discount_amount: Optional[Money] = None
    priority: int = 0


class FlatDiscountTier(_DiscountTierBase):
    discount_type: Literal["flat"]


class PercentageDiscountTier(_DiscountTierBase):
    discount_type: Literal["percentage"]


DiscountTier = Annotated[
    Union[FlatDiscountTier, PercentageDiscountTier],
    Field(discriminator="discount_type"),
]


class TimeWindow(BaseModel):
    start_time: str = Field(..., min_length=1)  # "09:00", matched verbatim
    end_time: str = Field(..., min_length=1)
    capacity: int = Field(..., ge=1)
    booked: int = Field(0, ge=0)

    @model_validator(mode="after")
    def booked_within_capacity(self):
        if self.booked > self.capacity:
            raise ValueError("booked cannot exceed capacity")
        return self


class DeliverySlotGroup(BaseModel):
    date: SlotDate
    slots: list[TimeWindow] = Field(default_factory=list)


class StoreConfigDocument(BaseModel):
    """The configurable part of a store config row."""

    store_address: StoreAddress = Field(default_factory=StoreAddress)
    delivery_fee: DeliveryFeePolicy = Field(default_factory=FlatDeliveryFee)
    cart_discounts: list[DiscountTier] = Field(default_factory=list)
    delivery_slots: list[DeliverySlotGroup] = Field(default_factory=list)
    is_delivery_enabled: bool = True


class StoreConfigUpdate(BaseModel):
    """Admin replacement: each field present replaces the stored one wholesale."""

    tenant_id: Optional[str] = None
    store_address: Optional[StoreAddress] = None
    delivery_fee: Optional[DeliveryFeePolicy] = None
    cart_discounts: Optional[list[DiscountTier]] = None
    delivery_slots: Optional[list[DeliverySlotGroup]] = None
    is_delivery_enabled: Optional[bool] = None


class StoreConfigResponse(StoreConfigDocument):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime


# ============================================================================
# PRICING / SLOT ENDPOINTS
# ============================================================================


class AppliedDiscountRule(BaseModel):
    discount_type: Literal["flat", "percentage"]
    value: Decimal
    min_cart_value: Decimal
    priority: int
    max_discount_amount: Optional[Decimal] = None


class PricingRequest(BaseModel):
    cart_value: Decimal = Field(..., gt=0)
    distance_km: Decimal = Field(Decimal("0"), ge=0)
    tenant_id: Optional[str] = None


class PricingResponse(BaseModel):
    cart_value: Decimal
    delivery_fee: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    applied_discount_rule: Optional[AppliedDiscountRule] = None


class ReserveSlotRequest(BaseModel):
    date: SlotDate
    start_time: str = Field(..., min_length=1)
    tenant_id: Optional[str] = None


class SlotReservationResponse(BaseModel):
    message: str
    date: datetime
    start_time: str
    end_time: str
    capacity: int
    booked: int


# ============================================================================
# CATALOG
# ============================================================================


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    mrp: Money
    price: Money
    unit: ProductUnit
    description: str = Field("", max_length=2000)
    is_active: bool = True
    category_id: Optional[uuid.UUID] = None


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=256)
    mrp: Optional[Money] = None
    price: Optional[Money] = None
    unit: Optional[ProductUnit] = None
    description: Optional[str] = Field(None, max_length=2000)
    is_active: Optional[bool] = None
    category_id: Optional[uuid.UUID] = None


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    discount: Decimal
    created_at: datetime
    updated_at: datetime


# ============================================================================
# CART
# ============================================================================


class CartItemDocument(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., ge=1)
    unit: CartUnit
    price_at_add: Money
    discount_at_add: Money = Decimal("0")


class CartItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., ge=1)
    unit: CartUnit


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1)
    unit: CartUnit


class CartItemResponse(CartItemDocument):
    product_name: Optional[str] = None
    is_active: Optional[bool] = None
    line_total: Decimal


class CartResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    items: list[CartItemResponse]
    subtotal: Decimal
    item_count: int
    updated_at: Optional[datetime] = None


# ============================================================================
# ORDERS
# ============================================================================


class DeliveryAddress(BaseModel):
    line1: str = Field(..., min_length=1)
    line2: str = ""
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class DeliverySlotRequest(BaseModel):
    date: SlotDate
    start_time: str = Field(..., min_length=1)


class OrderDeliverySlot(BaseModel):
    date: datetime
    start_time: str
    end_time: str


class OrderItemDocument(BaseModel):
    """Line item copied from the cart when the order is placed."""

    product_id: uuid.UUID
    product_name: str
    quantity: int = Field(..., ge=1)
    unit: CartUnit
    price: Money
    discount: Money = Decimal("0")
    total: Decimal


class OrderCreate(BaseModel):
    delivery_address: DeliveryAddress
    delivery_slot: Optional[DeliverySlotRequest] = None
    payment_method: PaymentMethod = PaymentMethod.COD
    notes: str = ""
    distance_km: Decimal = Field(Decimal("0"), ge=0)
    tenant_id: Optional[str] = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    user_id: str
    tenant_id: Optional[str] = None
    items: list[OrderItemDocument]
    subtotal: Decimal
    delivery_fee: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    applied_discount_rule: Optional[AppliedDiscountRule] = None
    delivery_address: DeliveryAddress
    delivery_slot: Optional[OrderDeliverySlot] = None
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    notes: str = ""
    admin_notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class OrderListResponse(BaseModel):
    """Paginated order list."""

    items: list[OrderResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    admin_notes: Optional[str] = None
