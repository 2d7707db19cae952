from __future__ import annotations

from datetime import date, time
from typing import Protocol, Sequence

from ..models import Booking, Organisation, PickupEvent


class OrganisationRepository(Protocol):
    async def get(self, organisation_id: int) -> Organisation | None: ...

    async def get_by_slug(self, slug: str) -> Organisation | None: ...

    async def create(self, *, slug: str, name: str, notification_phone: str | None) -> Organisation: ...

    async def save(self, organisation: Organisation) -> Organisation: ...

    async def search(self, query: str, limit: int) -> list[Organisation]: ...


class EventRepository(Protocol):
    async def get(self, event_id: int) -> PickupEvent | None: ...

    async def get_for_update(self, event_id: int) -> PickupEvent | None: ...

    async def get_for_update_by_booking(self, booking_id: int) -> PickupEvent | None: ...

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
    ) -> list[PickupEvent]: ...

    async def save(self, event: PickupEvent) -> PickupEvent: ...

    async def delete_with_bookings(self, event: PickupEvent) -> int: ...

    async def list_upcoming(self, organisation_id: int, today: date) -> list[PickupEvent]: ...


class BookingRepository(Protocol):
    async def get(self, booking_id: int) -> Booking | None: ...

    async def get_for_update(self, booking_id: int) -> Booking | None: ...

    async def list_for_event(self, event_id: int) -> list[Booking]: ...

    async def phone_taken(self, event_id: int, phone: str, *, exclude_booking_id: int | None = None) -> bool: ...

    async def create(
        self,
        *,
        event_id: int,
        name: str,
        phone: str,
        address: str,
        pickup_time: time,
        party_size: int,
    ) -> Booking: ...

    async def save(self, booking: Booking) -> Booking: ...

    async def delete(self, booking: Booking) -> None: ...

    async def find_by_phone(
        self,
        organisation_id: int,
        pickup_date: date,
        phone: str,
    ) -> list[tuple[Booking, PickupEvent]]: ...
