"""Unit tests for order placement, cancellation and admin status changes.

Tests call the order service directly with the db_session fixture.
"""

from decimal import Decimal

import pytest
from services.storefront_service.errors import (
    EmptyCartError,
    InactiveProductError,
    InvalidTransitionError,
    SlotUnavailableError,
)
from services.storefront_service.models import Order, OrderStatus, PaymentMethod
from services.storefront_service.schemas import OrderCreate
from services.storefront_service.services import orders as orders_service
from services.storefront_service.services.orders import (
    cancel_order,
    clamp_page,
    create_order,
    list_all_orders,
    list_orders,
    update_order_status,
)
from services.storefront_service.services.store_config import load_document
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from tests.factories import (
    CartFactory,
    ProductFactory,
    StoreConfigFactory,
    slot_day,
    slot_group,
    window,
)

USER = "customer-1"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _order_in(slot=True, **overrides):
    data = {
        "delivery_address": {
            "line1": "221B Baker Street",
            "city": "Pune",
            "state": "Maharashtra",
            "postal_code": "411001",
        },
        "payment_method": "cod",
    }
    if slot:
        data["delivery_slot"] = {"date": slot_day(1).isoformat(), "start_time": "09:00"}
    data.update(overrides)
    return OrderCreate.model_validate(data)


async def _setup(db, *, quantity=2, capacity=2, booked=0, products=None, user_id=USER):
    """Config with one window tomorrow, an active product and a cart holding it."""
    config = StoreConfigFactory.create(
        delivery_slots=[slot_group(slot_day(1), window(capacity=capacity, booked=booked))]
    )
    products = products or [
        ProductFactory.create(mrp=Decimal("600"), price=Decimal("600"))
    ]
    cart = CartFactory.create(user_id=user_id, products=products, quantity=quantity)
    db.add_all([config, cart, *products])
    await db.commit()
    return config, cart, products


async def _booked(db, config):
    await db.refresh(config)
    return load_document(config).delivery_slots[0].slots[0].booked


async def _order_count(db):
    return await db.scalar(select(func.count()).select_from(Order))


# ---------------------------------------------------------------------------
# create_order
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_order_prices_books_slot_and_empties_cart(db_session):
    config, cart, [product] = await _setup(db_session, quantity=2)

    order = await create_order(db_session, USER, _order_in())

    assert order.order_number.startswith("ORD")
    assert order.status == OrderStatus.PENDING
    assert order.payment_method == PaymentMethod.COD
    assert order.subtotal == Decimal("1200")
    assert order.delivery_fee == Decimal("50")
    assert order.discount_amount == Decimal("100")
    assert order.total_amount == Decimal("1150")
    assert order.applied_discount_rule["discount_type"] == "flat"
    assert order.items[0]["product_name"] == product.name
    assert order.items[0]["quantity"] == 2
    assert order.delivery_slot["start_time"] == "09:00"
    assert order.delivery_slot["end_time"] == "11:00"

    assert await _booked(db_session, config) == 1
    await db_session.refresh(cart)
    assert cart.items == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_order_without_slot(db_session):
    config, _, _ = await _setup(db_session, quantity=1)

    order = await create_order(db_session, USER, _order_in(slot=False))

    assert order.delivery_slot is None
    assert order.subtotal == Decimal("600")
    assert order.discount_amount == Decimal("0")
    assert await _booked(db_session, config) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_total_matches_stored_components(db_session):
    await _setup(db_session, quantity=3)

    order = await create_order(
        db_session, USER, _order_in(distance_km="4.25", slot=False)
    )

    assert order.total_amount == max(
        Decimal("0"), order.subtotal - order.discount_amount + order.delivery_fee
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_inactive_product_blocks_order_and_keeps_cart(db_session):
    products = [
        ProductFactory.create(),
        ProductFactory.create(is_active=False),
    ]
    config, cart, _ = await _setup(db_session, products=products)
    items_before = list(cart.items)

    with pytest.raises(InactiveProductError):
        await create_order(db_session, USER, _order_in())

    assert await _order_count(db_session) == 0
    await db_session.refresh(cart)
    assert cart.items == items_before
    assert await _booked(db_session, config) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_empty_cart_is_rejected(db_session):
    config, cart, _ = await _setup(db_session)
    cart.items = []
    await db_session.commit()

    with pytest.raises(EmptyCartError):
        await create_order(db_session, USER, _order_in())
    with pytest.raises(EmptyCartError):
        await create_order(db_session, "no-cart-user", _order_in())

    assert await _order_count(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_full_slot_blocks_order(db_session):
    config, cart, _ = await _setup(db_session, capacity=1, booked=1)
    items_before = list(cart.items)

    with pytest.raises(SlotUnavailableError) as exc_info:
        await create_order(db_session, USER, _order_in())

    assert exc_info.value.message == "Selected time slot is full"
    assert await _order_count(db_session) == 0
    assert await _booked(db_session, config) == 1
    await db_session.refresh(cart)
    assert cart.items == items_before


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_slot_date_blocks_order(db_session):
    await _setup(db_session)
    order_in = _order_in()
    order_in.delivery_slot.date = slot_day(20)

    with pytest.raises(SlotUnavailableError) as exc_info:
        await create_order(db_session, USER, order_in)

    assert exc_info.value.message == "Selected delivery date not available"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_last_seat_goes_to_one_order(db_session):
    products = [ProductFactory.create()]
    config, _, _ = await _setup(db_session, capacity=1, products=products)
    db_session.add(CartFactory.create(user_id="customer-2", products=products))
    await db_session.commit()

    await create_order(db_session, USER, _order_in())
    with pytest.raises(SlotUnavailableError):
        await create_order(db_session, "customer-2", _order_in())

    assert await _order_count(db_session) == 1
    assert await _booked(db_session, config) == 1


# ---------------------------------------------------------------------------
# cancel_order
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_pending_order_releases_slot(db_session):
    config, _, _ = await _setup(db_session)
    order = await create_order(db_session, USER, _order_in())
    assert await _booked(db_session, config) == 1

    cancelled = await cancel_order(db_session, order.id, USER)

    assert cancelled.status == OrderStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    assert await _booked(db_session, config) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_survives_database_error_on_release(db_session, monkeypatch):
    """The cancel is already committed when the seat release hits the database."""
    config, _, _ = await _setup(db_session)
    order = await create_order(db_session, USER, _order_in())
    order_id = order.id

    async def failing_release(*args, **kwargs):
        raise OperationalError("UPDATE storefront_store_configs", {}, Exception("gone"))

    monkeypatch.setattr(orders_service, "release_slot_atomic", failing_release)

    cancelled = await cancel_order(db_session, order_id, USER)

    assert cancelled.status == OrderStatus.CANCELLED
    stored = await db_session.get(Order, order_id)
    assert stored.status == OrderStatus.CANCELLED
    assert await _booked(db_session, config) == 1


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
async def test_cancel_finished_order_is_rejected(db_session, status):
    config, _, _ = await _setup(db_session)
    order = await create_order(db_session, USER, _order_in())
    order.status = status
    await db_session.commit()

    with pytest.raises(InvalidTransitionError):
        await cancel_order(db_session, order.id, USER)

    await db_session.refresh(order)
    assert order.status == status
    assert await _booked(db_session, config) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_survives_missing_slot(db_session):
    """The slot date was removed from the config; cancelling still works."""
    config, _, _ = await _setup(db_session)
    order = await create_order(db_session, USER, _order_in())
    config.delivery_slots = []
    await db_session.commit()

    cancelled = await cancel_order(db_session, order.id, USER)

    assert cancelled.status == OrderStatus.CANCELLED


# ---------------------------------------------------------------------------
# update_order_status
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_admin_delivered_sets_timestamp(db_session):
    await _setup(db_session)
    order = await create_order(db_session, USER, _order_in())

    updated = await update_order_status(
        db_session, order.id, OrderStatus.DELIVERED, admin_notes="Left at door"
    )

    assert updated.status == OrderStatus.DELIVERED
    assert updated.delivered_at is not None
    assert updated.admin_notes == "Left at door"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_admin_cancel_releases_slot_once(db_session):
    config, _, _ = await _setup(db_session)
    order = await create_order(db_session, USER, _order_in())

    await update_order_status(db_session, order.id, OrderStatus.CANCELLED)
    await update_order_status(db_session, order.id, OrderStatus.CANCELLED)

    assert await _booked(db_session, config) == 0


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_clamp_page():
    assert clamp_page(0, 500, (10, 50)) == (1, 50)
    assert clamp_page(3, 1, (10, 50)) == (3, 10)
    assert clamp_page(2, 20, (10, 100)) == (2, 20)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_orders_only_returns_own_orders(db_session):
    products = [ProductFactory.create()]
    await _setup(db_session, products=products)
    db_session.add(CartFactory.create(user_id="customer-2", products=products))
    await db_session.commit()
    await create_order(db_session, USER, _order_in(slot=False))
    await create_order(db_session, "customer-2", _order_in(slot=False))

    mine = await list_orders(db_session, USER)
    everyone = await list_all_orders(db_session)
    cancelled = await list_all_orders(db_session, status=OrderStatus.CANCELLED)

    assert mine["total"] == 1
    assert mine["items"][0].user_id == USER
    assert mine["page_size"] == 10
    assert everyone["total"] == 2
    assert everyone["total_pages"] == 1
    assert cancelled["total"] == 0
