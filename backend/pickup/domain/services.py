from dataclasses import dataclass

from .errors import (
    BookingsClosedError,
    CapacityExceededError,
    DuplicatePhoneError,
    EventPastError,
    InvalidSlotError,
)
from .lifecycle import BookingsState, accepts_bookings


@dataclass(frozen=True)
class BookingSnapshot:
    bookings_state: BookingsState
    event_is_past: bool
    slot_on_grid: bool
    phone_taken: bool
    remaining: int
    enforce_date_gate: bool = True


def validate_booking(snapshot: BookingSnapshot, *, party_size: int) -> int:
    """
    Pure validation of one booking attempt against a freshly read event state.
    Checks run in a fixed order so the caller always sees the first failing rule.
    Returns the seats left in the slot after booking. Raises domain errors otherwise.
    """
    if not accepts_bookings(snapshot.bookings_state):
        raise BookingsClosedError()
    if snapshot.enforce_date_gate and snapshot.event_is_past:
        raise EventPastError()
    if not snapshot.slot_on_grid:
        raise InvalidSlotError()
    if snapshot.phone_taken:
        raise DuplicatePhoneError()
    if party_size <= 0:
        raise CapacityExceededError("Party size must be at least 1.")
    if party_size > snapshot.remaining:
        raise CapacityExceededError()
    return snapshot.remaining - party_size
