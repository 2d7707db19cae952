import asyncio
import itertools
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date, datetime, time
from typing import AsyncIterator, Sequence

import pytest
from pickup.domain.lifecycle import BookingsState
from pickup.models import Booking, Organisation, PickupEvent


def _now() -> datetime:
    return datetime(2025, 1, 1, 12, 0, 0)


class FakeTransaction:
    """Row locks held until the transaction ends, like SELECT ... FOR UPDATE."""

    def __init__(self, store: "FakeStore") -> None:
        self.store = store
        self.held: list[asyncio.Lock] = []

    async def lock(self, key: tuple[str, int]) -> None:
        row_lock = self.store.locks[key]
        if row_lock in self.held:
            return
        await row_lock.acquire()
        self.held.append(row_lock)

    def release(self) -> None:
        for row_lock in reversed(self.held):
            row_lock.release()
        self.held.clear()


class FakeOrganisationRepository:
    def __init__(self, store: "FakeStore") -> None:
        self.store = store

    async def get(self, organisation_id: int) -> Organisation | None:
        return self.store.organisations.get(organisation_id)

    async def get_by_slug(self, slug: str) -> Organisation | None:
        return next((o for o in self.store.organisations.values() if o.slug == slug), None)

    async def create(self, *, slug: str, name: str, notification_phone: str | None) -> Organisation:
        return self.store.add_organisation(slug=slug, name=name, notification_phone=notification_phone)

    async def save(self, organisation: Organisation) -> Organisation:
        return organisation

    async def search(self, query: str, limit: int) -> list[Organisation]:
        rows = [o for o in self.store.organisations.values() if query.lower() in o.name.lower()]
        return sorted(rows, key=lambda o: o.name)[:limit]


class FakeEventRepository:
    def __init__(self, store: "FakeStore", tx: FakeTransaction) -> None:
        self.store = store
        self.tx = tx

    async def get(self, event_id: int) -> PickupEvent | None:
        return self.store.events.get(event_id)

    async def get_for_update(self, event_id: int) -> PickupEvent | None:
        await self.tx.lock(("event", event_id))
        self.store.calls.append("lock event")
        await asyncio.sleep(0)
        return self.store.events.get(event_id)

    async def get_for_update_by_booking(self, booking_id: int) -> PickupEvent | None:
        booking = self.store.bookings.get(booking_id)
        if booking is None:
            return None
        return await self.get_for_update(booking.pickup_event_id)

    async def create_many(
        self,
        *,
        organisation_id: int,
        title: str,
        dates: Sequence[date],
        capacity: int,
        start_time: time,
        end_time: time,
        interval_minutes: int,
    ) -> list[PickupEvent]:
        return [
            self.store.add_event(
                organisation_id=organisation_id,
                title=title,
                pickup_date=pickup_date,
                capacity=capacity,
                start_time=start_time,
                end_time=end_time,
                interval_minutes=interval_minutes,
            )
            for pickup_date in dates
        ]

    async def save(self, event: PickupEvent) -> PickupEvent:
        return event

    async def delete_with_bookings(self, event: PickupEvent) -> int:
        doomed = [b.id for b in self.store.bookings.values() if b.pickup_event_id == event.id]
        for booking_id in doomed:
            del self.store.bookings[booking_id]
        del self.store.events[event.id]
        return len(doomed)

    async def list_upcoming(self, organisation_id: int, today: date) -> list[PickupEvent]:
        rows = [
            e for e in self.store.events.values() if e.organisation_id == organisation_id and e.pickup_date >= today
        ]
        return sorted(rows, key=lambda e: (e.pickup_date, e.start_time, e.id))


class FakeBookingRepository:
    def __init__(self, store: "FakeStore", tx: FakeTransaction) -> None:
        self.store = store
        self.tx = tx

    async def get(self, booking_id: int) -> Booking | None:
        self.store.calls.append("read booking")
        return self.store.bookings.get(booking_id)

    async def get_for_update(self, booking_id: int) -> Booking | None:
        await self.tx.lock(("booking", booking_id))
        self.store.calls.append("lock booking")
        return self.store.bookings.get(booking_id)

    async def list_for_event(self, event_id: int) -> list[Booking]:
        self.store.calls.append("read bookings")
        await asyncio.sleep(0)
        rows = [b for b in self.store.bookings.values() if b.pickup_event_id == event_id]
        return sorted(rows, key=lambda b: (b.pickup_time, b.id))

    async def phone_taken(self, event_id: int, phone: str, *, exclude_booking_id: int | None = None) -> bool:
        self.store.calls.append("read phone")
        await asyncio.sleep(0)
        return any(
            b.pickup_event_id == event_id and b.phone == phone and b.id != exclude_booking_id
            for b in self.store.bookings.values()
        )

    async def create(
        self,
        *,
        event_id: int,
        name: str,
        phone: str,
        address: str,
        pickup_time: time,
        party_size: int,
    ) -> Booking:
        return self.store.add_booking(
            event_id=event_id,
            name=name,
            phone=phone,
            address=address,
            pickup_time=pickup_time,
            party_size=party_size,
        )

    async def save(self, booking: Booking) -> Booking:
        return booking

    async def delete(self, booking: Booking) -> None:
        del self.store.bookings[booking.id]

    async def find_by_phone(self, organisation_id: int, pickup_date: date, phone: str) -> list[tuple[Booking, PickupEvent]]:
        rows = []
        for booking in self.store.bookings.values():
            event = self.store.events[booking.pickup_event_id]
            if event.organisation_id == organisation_id and event.pickup_date == pickup_date and booking.phone == phone:
                rows.append((booking, event))
        return sorted(rows, key=lambda row: (row[0].pickup_time, row[0].id))


class FakeStore:
    def __init__(self) -> None:
        self.organisations: dict[int, Organisation] = {}
        self.events: dict[int, PickupEvent] = {}
        self.bookings: dict[int, Booking] = {}
        self.locks: defaultdict[tuple[str, int], asyncio.Lock] = defaultdict(asyncio.Lock)
        self._ids = itertools.count(1)
        # Repository calls in order, so tests can check that locks precede reads.
        self.calls: list[str] = []

    @asynccontextmanager
    async def transaction(
        self,
    ) -> AsyncIterator[tuple[FakeEventRepository, FakeBookingRepository, FakeOrganisationRepository]]:
        tx = FakeTransaction(self)
        try:
            yield FakeEventRepository(self, tx), FakeBookingRepository(self, tx), FakeOrganisationRepository(self)
        finally:
            tx.release()

    def add_organisation(self, *, slug: str = "grace", name: str = "Grace Church", notification_phone: str | None = None) -> Organisation:
        organisation = Organisation(
            id=next(self._ids),
            slug=slug,
            name=name,
            notification_phone=notification_phone,
            created_at=_now(),
            updated_at=_now(),
        )
        self.organisations[organisation.id] = organisation
        return organisation

    def add_event(
        self,
        *,
        organisation_id: int,
        title: str = "Sunday service",
        pickup_date: date = date(2025, 6, 1),
        capacity: int = 2,
        start_time: time = time(8, 0),
        end_time: time = time(8, 40),
        interval_minutes: int = 20,
        bookings_state: BookingsState = BookingsState.OPEN,
    ) -> PickupEvent:
        event = PickupEvent(
            id=next(self._ids),
            organisation_id=organisation_id,
            title=title,
            pickup_date=pickup_date,
            capacity=capacity,
            start_time=start_time,
            end_time=end_time,
            interval_minutes=interval_minutes,
            bookings_state=bookings_state,
            created_at=_now(),
            updated_at=_now(),
        )
        self.events[event.id] = event
        return event

    def add_booking(
        self,
        *,
        event_id: int,
        pickup_time: time,
        party_size: int = 1,
        name: str = "Ada",
        phone: str | None = None,
        address: str = "1 Chapel Road",
    ) -> Booking:
        booking_id = next(self._ids)
        booking = Booking(
            id=booking_id,
            pickup_event_id=event_id,
            name=name,
            phone=phone or f"0700{booking_id:06d}",
            address=address,
            pickup_time=pickup_time,
            party_size=party_size,
            created_at=_now(),
            updated_at=_now(),
        )
        self.bookings[booking.id] = booking
        return booking

    def seats_used(self, event_id: int, pickup_time: time) -> int:
        return sum(
            b.party_size
            for b in self.bookings.values()
            if b.pickup_event_id == event_id and b.pickup_time == pickup_time
        )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
