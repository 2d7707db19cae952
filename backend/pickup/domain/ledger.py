from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import Iterable, Iterator, Protocol, Sequence


class BookedSeats(Protocol):
    id: int
    pickup_time: time
    party_size: int


@dataclass(frozen=True)
class SlotUsage:
    slot: time
    used: int
    remaining: int

    @property
    def is_full(self) -> bool:
        return self.remaining == 0


@dataclass(frozen=True)
class CapacityLedger:
    """Seat usage of one event, per slot and in aggregate. Read-only."""

    capacity: int
    slot_times: tuple[time, ...]
    _used: dict[time, int] = field(default_factory=dict, repr=False)

    def used(self, slot: time) -> int:
        return self._used.get(slot, 0)

    def remaining(self, slot: time) -> int:
        return max(0, self.capacity - self.used(slot))

    def is_full(self, slot: time) -> bool:
        return self.remaining(slot) == 0

    @property
    def total_used(self) -> int:
        return sum(self.used(slot) for slot in self.slot_times)

    @property
    def total_capacity(self) -> int:
        return self.capacity * len(self.slot_times)

    @property
    def is_event_full(self) -> bool:
        return self.total_used >= self.total_capacity

    def slots(self) -> Iterator[SlotUsage]:
        for slot in self.slot_times:
            yield SlotUsage(slot=slot, used=self.used(slot), remaining=self.remaining(slot))


def build_ledger(
    slots: Sequence[time],
    capacity: int,
    bookings: Iterable[BookedSeats],
    *,
    exclude_booking_id: int | None = None,
) -> CapacityLedger:
    """Sum party sizes per slot; bookings off the slot grid are ignored."""
    on_grid = set(slots)
    used: dict[time, int] = {}
    for booking in bookings:
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        if booking.pickup_time not in on_grid:
            continue
        used[booking.pickup_time] = used.get(booking.pickup_time, 0) + (booking.party_size or 1)
    return CapacityLedger(capacity=capacity, slot_times=tuple(slots), _used=used)


def low_seats_threshold(capacity: int) -> int:
    """Remaining-seat count at or below which a slot is shown as almost full."""
    return max(3, round(capacity * 0.2))
