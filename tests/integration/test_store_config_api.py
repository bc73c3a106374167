"""Integration tests for the store config endpoints."""

from decimal import Decimal

import pytest
from services.storefront_service.app.main import app
from tests.conftest import make_admin_user, override_auth
from tests.factories import StoreConfigFactory, flat_tier, percentage_tier, slot_day, slot_group, window

API = "/api/v1"


# ---------------------------------------------------------------------------
# GET / PUT /storeconfig
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_creates_default_config(client):
    """GET /storeconfig: first read creates and returns the default config."""
    response = await client.get(f"{API}/storeconfig")

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["tenant_id"] is None
    assert data["delivery_fee"]["type"] == "flat"
    assert Decimal(data["delivery_fee"]["base_fee"]) == Decimal("50")
    assert data["cart_discounts"][0]["priority"] == 10
    assert data["delivery_slots"] == []

    again = await client.get(f"{API}/storeconfig")
    assert again.json()["id"] == data["id"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_put_requires_admin(client):
    response = await client.put(f"{API}/storeconfig", json={"is_delivery_enabled": False})

    assert response.status_code == 403
    assert response.json()["success"] is False


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_replaces_discount_tiers(client):
    """PUT /storeconfig: given sections replace the stored ones wholesale."""
    payload = {
        "cart_discounts": [
            flat_tier(1000, 100, priority=10),
            percentage_tier(1000, 15, priority=20, max_discount_amount=300),
        ],
        "delivery_slots": [slot_group(slot_day(1), window(capacity=5))],
    }
    with override_auth(app, make_admin_user()):
        response = await client.put(f"{API}/storeconfig", json=payload)

    assert response.status_code == 200, response.text
    data = response.json()
    assert [tier["discount_type"] for tier in data["cart_discounts"]] == [
        "flat",
        "percentage",
    ]
    assert data["delivery_slots"][0]["slots"][0]["capacity"] == 5
    assert data["delivery_fee"]["type"] == "flat"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_put_rejects_booked_above_capacity(client):
    payload = {"delivery_slots": [slot_group(slot_day(1), window(capacity=1, booked=2))]}
    with override_auth(app, make_admin_user()):
        response = await client.put(f"{API}/storeconfig", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


# ---------------------------------------------------------------------------
# POST /storeconfig/compute
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_compute_totals(client, db_session):
    db_session.add(
        StoreConfigFactory.create(
            delivery_fee={"type": "per_km", "base_fee": "30", "rate": "10"},
            cart_discounts=[
                flat_tier(1000, 100, priority=10),
                percentage_tier(1000, 15, priority=20, max_discount_amount=300),
            ],
        )
    )
    await db_session.commit()

    response = await client.post(
        f"{API}/storeconfig/compute", json={"cart_value": 2000, "distance_km": 5}
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert Decimal(data["delivery_fee"]) == Decimal("80")
    assert Decimal(data["discount_amount"]) == Decimal("300")
    assert Decimal(data["final_amount"]) == Decimal("1780")
    assert data["applied_discount_rule"]["discount_type"] == "percentage"


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("payload", [{"cart_value": 0}, {"cart_value": -5}, {}])
async def test_compute_rejects_missing_or_non_positive_cart_value(client, payload):
    response = await client.post(f"{API}/storeconfig/compute", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["errors"][0]["field"] == "cart_value"


# ---------------------------------------------------------------------------
# POST /storeconfig/reserve-slot
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reserve_slot(client, db_session):
    db_session.add(StoreConfigFactory.create())
    await db_session.commit()

    response = await client.post(
        f"{API}/storeconfig/reserve-slot",
        json={"date": slot_day(1).date().isoformat(), "start_time": "09:00"},
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["message"] == "Slot reserved successfully"
    assert data["booked"] == 1
    assert data["capacity"] == 2
    assert data["end_time"] == "11:00"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reserve_full_slot(client, db_session):
    db_session.add(
        StoreConfigFactory.create(
            delivery_slots=[slot_group(slot_day(1), window(capacity=1, booked=1))]
        )
    )
    await db_session.commit()

    response = await client.post(
        f"{API}/storeconfig/reserve-slot",
        json={"date": slot_day(1).isoformat(), "start_time": "09:00"},
    )

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "SLOT_CAPACITY_EXCEEDED",
        "message": "Slot not available or capacity exceeded",
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reserve_unknown_window(client, db_session):
    db_session.add(StoreConfigFactory.create())
    await db_session.commit()

    response = await client.post(
        f"{API}/storeconfig/reserve-slot",
        json={"date": slot_day(1).isoformat(), "start_time": "10:00"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Time slot not found"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reserve_without_config(client):
    response = await client.post(
        f"{API}/storeconfig/reserve-slot",
        json={"date": slot_day(1).isoformat(), "start_time": "09:00", "tenant_id": "t-9"},
    )

    assert response.status_code == 404
    assert response.json()["error"] == "STORE_CONFIG_NOT_FOUND"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_compute_with_default_config(client):
    """Flat 50 fee, flat 100 off from 1000: 1200 -> 1150."""
    response = await client.post(
        f"{API}/storeconfig/compute", json={"cart_value": "1200", "distance_km": "5"}
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert Decimal(data["delivery_fee"]) == Decimal("50")
    assert Decimal(data["discount_amount"]) == Decimal("100")
    assert Decimal(data["final_amount"]) == Decimal("1150")
    assert data["applied_discount_rule"]["priority"] == 10
