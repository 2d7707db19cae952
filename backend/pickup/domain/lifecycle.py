from __future__ import annotations

from datetime import date, time
from enum import StrEnum
from typing import Iterable

from .errors import InvalidEventConfigError
from .ledger import BookedSeats, build_ledger
from .slots import enumerate_slots, format_clock, is_slot


class BookingsState(StrEnum):
    OPEN = "open"
    PAUSED = "paused"


def accepts_bookings(state: BookingsState) -> bool:
    return state == BookingsState.OPEN


def is_past(pickup_date: date, today: date) -> bool:
    return pickup_date < today


def validate_event_config(
    *,
    title: str,
    capacity: int,
    start_time: time,
    end_time: time,
    interval_minutes: int,
) -> None:
    if not title.strip():
        raise InvalidEventConfigError("Event title is required.")
    if capacity <= 0:
        raise InvalidEventConfigError("Capacity must be a number greater than 0.")
    if interval_minutes <= 0:
        raise InvalidEventConfigError("Interval minutes must be a number greater than 0.")
    if end_time <= start_time:
        raise InvalidEventConfigError("Pickup end time must be after pickup start time.")


def check_reconfiguration(
    *,
    capacity: int,
    start_time: time,
    end_time: time,
    interval_minutes: int,
    bookings: Iterable[BookedSeats],
) -> None:
    """Reject a new window or capacity that would strand or overfill existing bookings."""
    bookings = list(bookings)
    for booking in bookings:
        if not is_slot(start_time, end_time, interval_minutes, booking.pickup_time):
            raise InvalidEventConfigError(
                f"Existing bookings at {format_clock(booking.pickup_time)} would no longer match a time slot."
            )
    ledger = build_ledger(enumerate_slots(start_time, end_time, interval_minutes), capacity, bookings)
    for usage in ledger.slots():
        if usage.used > capacity:
            raise InvalidEventConfigError(
                f"The {format_clock(usage.slot)} slot already has {usage.used} seats booked."
            )
