"""Unit tests for delivery slot lookup, reservation and release."""

from datetime import date, datetime, timedelta, timezone

import pytest
from services.storefront_service.errors import (
    SlotCapacityExceededError,
    SlotDateNotFoundError,
    SlotWindowNotFoundError,
)
from services.storefront_service.schemas import DeliverySlotGroup
from services.storefront_service.services.slots import (
    check_slot_available,
    find_time_window,
    normalize_slot_date,
    release_slot,
    reserve_slot,
)
from tests.factories import slot_day, slot_group, window

DAY = datetime(2025, 12, 12, tzinfo=timezone.utc)


def _groups(*groups):
    return [DeliverySlotGroup.model_validate(group) for group in groups]


# ---------------------------------------------------------------------------
# Date normalisation
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "value",
    [
        "2025-12-12",
        "2025-12-12T00:00:00Z",
        "2025-12-12T18:45:00+00:00",
        date(2025, 12, 12),
        datetime(2025, 12, 12, 23, 59),
    ],
)
def test_normalize_slot_date_truncates_to_utc_midnight(value):
    assert normalize_slot_date(value) == DAY


@pytest.mark.unit
def test_normalize_slot_date_uses_utc_calendar_day():
    """02:00 at +05:30 is still the previous day in UTC."""
    value = datetime(2025, 12, 13, 2, 0, tzinfo=timezone(timedelta(hours=5, minutes=30)))

    assert normalize_slot_date(value) == DAY


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_find_time_window_matches_date_and_start_time():
    groups = _groups(
        slot_group(DAY, window("09:00", "11:00"), window("11:00", "13:00"))
    )

    found = find_time_window(groups, "2025-12-12T10:30:00Z", "11:00")

    assert found.end_time == "13:00"


@pytest.mark.unit
def test_unknown_date_and_unknown_window_are_distinguished():
    groups = _groups(slot_group(DAY, window("09:00", "11:00")))

    with pytest.raises(SlotDateNotFoundError):
        find_time_window(groups, DAY + timedelta(days=1), "09:00")
    with pytest.raises(SlotWindowNotFoundError):
        find_time_window(groups, DAY, "9:00")


@pytest.mark.unit
def test_first_group_for_a_date_wins():
    groups = _groups(
        slot_group(DAY, window("09:00", "11:00", capacity=1)),
        slot_group(DAY, window("09:00", "11:00", capacity=50)),
    )

    assert find_time_window(groups, DAY, "09:00").capacity == 1


@pytest.mark.unit
def test_first_window_for_a_start_time_wins():
    groups = _groups(
        slot_group(DAY, window("09:00", "10:00"), window("09:00", "12:00"))
    )

    assert find_time_window(groups, DAY, "09:00").end_time == "10:00"


# ---------------------------------------------------------------------------
# Reserve / release
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_reserve_increments_booked():
    groups = _groups(slot_group(DAY, window(capacity=2)))

    reserved = reserve_slot(groups, DAY, "09:00")

    assert reserved.booked == 1
    assert groups[0].slots[0].booked == 1


@pytest.mark.unit
def test_reserve_full_window_fails_without_change():
    groups = _groups(slot_group(DAY, window(capacity=1, booked=1)))

    with pytest.raises(SlotCapacityExceededError):
        reserve_slot(groups, DAY, "09:00")

    assert groups[0].slots[0].booked == 1


@pytest.mark.unit
def test_check_slot_available_does_not_take_a_seat():
    groups = _groups(slot_group(slot_day(3), window(capacity=1)))

    check_slot_available(groups, slot_day(3), "09:00")

    assert groups[0].slots[0].booked == 0


@pytest.mark.unit
def test_release_never_goes_below_zero():
    groups = _groups(slot_group(DAY, window(capacity=3, booked=1)))

    assert release_slot(groups, DAY, "09:00") is True
    assert release_slot(groups, DAY, "09:00") is False
    assert groups[0].slots[0].booked == 0


@pytest.mark.unit
def test_release_unknown_window_raises():
    groups = _groups(slot_group(DAY, window()))

    with pytest.raises(SlotWindowNotFoundError):
        release_slot(groups, DAY, "17:00")
