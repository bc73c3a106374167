"""Delivery slot lookup, reservation and release.

Slots live inside the store config document as a list of date groups. A slot
is addressed by its calendar date (truncated to midnight UTC) and the exact
``start_time`` string. When a date appears in more than one group, or a start
time more than once within a group, the first occurrence wins.

These functions mutate the ``TimeWindow`` objects they are given; persisting
the document is the caller's job (see ``services.store_config``).
"""

from datetime import date, datetime
from typing import Iterable, Sequence, Union

from libs.common.datetime_utils import utc_midnight
from services.storefront_service.errors import (
    SlotCapacityExceededError,
    SlotDateNotFoundError,
    SlotWindowNotFoundError,
)
from services.storefront_service.schemas import DeliverySlotGroup, TimeWindow

DateLike = Union[str, date, datetime]
SlotKey = tuple[datetime, str]


def normalize_slot_date(value: DateLike) -> datetime:
    """Truncate to midnight UTC, the key used when slots are seeded and booked."""
    return utc_midnight(value)


def index_slots(groups: Iterable[DeliverySlotGroup]) -> dict[SlotKey, TimeWindow]:
    """Map ``(date, start_time)`` to its time window."""
    index: dict[SlotKey, TimeWindow] = {}
    seen_dates: set[datetime] = set()
    for group in groups:
        day = normalize_slot_date(group.date)
        if day in seen_dates:
            continue
        seen_dates.add(day)
        for window in group.slots:
            index.setdefault((day, window.start_time), window)
    return index


def find_time_window(
    groups: Sequence[DeliverySlotGroup], slot_date: DateLike, start_time: str
) -> TimeWindow:
    """Return the window for a date and start time.

    Raises SlotDateNotFoundError when no group has that date and
    SlotWindowNotFoundError when the date has no window starting at
    ``start_time``.
    """
    day = normalize_slot_date(slot_date)
    index = index_slots(groups)
    window = index.get((day, start_time))
    if window is not None:
        return window
    if any(normalize_slot_date(group.date) == day for group in groups):
        raise SlotWindowNotFoundError()
    raise SlotDateNotFoundError()


def check_slot_available(
    groups: Sequence[DeliverySlotGroup], slot_date: DateLike, start_time: str
) -> TimeWindow:
    """Like ``reserve_slot`` but without taking the seat."""
    window = find_time_window(groups, slot_date, start_time)
    if window.booked >= window.capacity:
        raise SlotCapacityExceededError()
    return window


def reserve_slot(
    groups: Sequence[DeliverySlotGroup], slot_date: DateLike, start_time: str
) -> TimeWindow:
    """Take one seat in a window; ``booked`` never exceeds ``capacity``."""
    window = check_slot_available(groups, slot_date, start_time)
    window.booked += 1
    return window


def release_slot(
    groups: Sequence[DeliverySlotGroup], slot_date: DateLike, start_time: str
) -> bool:
    """Give one seat back; ``booked`` never drops below zero.

    Returns True when a seat was released. Missing dates or windows raise the
    same errors as ``find_time_window`` so callers can decide to skip.
    """
    window = find_time_window(groups, slot_date, start_time)
    if window.booked <= 0:
        return False
    window.booked -= 1
    return True
