from dataclasses import dataclass
from datetime import date, time

from ..domain.errors import ForbiddenError, NotFoundError
from ..domain.ledger import CapacityLedger, build_ledger
from ..domain.lifecycle import is_past
from ..domain.repositories import BookingRepository, EventRepository
from ..domain.services import BookingSnapshot, validate_booking
from ..domain.slots import enumerate_slots, is_slot
from ..models import Booking, PickupEvent


async def _snapshot(
    booking_repo: BookingRepository,
    event: PickupEvent,
    *,
    phone: str,
    pickup_time: time,
    today: date,
    exclude_booking_id: int | None,
    enforce_date_gate: bool,
) -> BookingSnapshot:
    slot_on_grid = is_slot(event.start_time, event.end_time, event.interval_minutes, pickup_time)
    phone_taken = await booking_repo.phone_taken(event.id, phone, exclude_booking_id=exclude_booking_id)
    # Recomputed under the event lock on every attempt; never cached.
    ledger = build_ledger(
        enumerate_slots(event.start_time, event.end_time, event.interval_minutes),
        event.capacity,
        await booking_repo.list_for_event(event.id),
        exclude_booking_id=exclude_booking_id,
    )
    return BookingSnapshot(
        bookings_state=event.bookings_state,
        event_is_past=is_past(event.pickup_date, today),
        slot_on_grid=slot_on_grid,
        phone_taken=phone_taken,
        remaining=ledger.remaining(pickup_time) if slot_on_grid else 0,
        enforce_date_gate=enforce_date_gate,
    )


async def create_booking(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    *,
    event_id: int,
    name: str,
    phone: str,
    address: str,
    pickup_time: time,
    party_size: int = 1,
    today: date,
) -> tuple[Booking, PickupEvent]:
    event = await event_repo.get_for_update(event_id)
    if event is None:
        raise NotFoundError("Event not found.")

    phone = phone.strip()
    snapshot = await _snapshot(
        booking_repo,
        event,
        phone=phone,
        pickup_time=pickup_time,
        today=today,
        exclude_booking_id=None,
        enforce_date_gate=True,
    )
    validate_booking(snapshot, party_size=party_size)

    booking = await booking_repo.create(
        event_id=event.id,
        name=name.strip(),
        phone=phone,
        address=address.strip(),
        pickup_time=pickup_time,
        party_size=party_size,
    )
    return booking, event


async def edit_booking(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    *,
    booking_id: int,
    name: str,
    phone: str,
    address: str,
    pickup_time: time,
    party_size: int = 1,
    today: date,
) -> tuple[Booking, PickupEvent, time]:
    """Move or resize a booking. Returns the booking, its event and the previous pickup time."""
    # Lock order is always event then booking, and nothing is read before the event lock.
    event = await event_repo.get_for_update_by_booking(booking_id)
    if event is None:
        raise NotFoundError("Booking not found.")
    booking = await booking_repo.get_for_update(booking_id)
    if booking is None or booking.pickup_event_id != event.id:
        raise NotFoundError("Booking not found.")

    phone = phone.strip()
    snapshot = await _snapshot(
        booking_repo,
        event,
        phone=phone,
        pickup_time=pickup_time,
        today=today,
        exclude_booking_id=booking.id,
        enforce_date_gate=False,
    )
    validate_booking(snapshot, party_size=party_size)

    previous_time = booking.pickup_time
    booking.name = name.strip()
    booking.phone = phone
    booking.address = address.strip()
    booking.pickup_time = pickup_time
    booking.party_size = party_size
    updated = await booking_repo.save(booking)
    return updated, event, previous_time


async def cancel_booking(
    booking_repo: BookingRepository,
    event_repo: EventRepository,
    *,
    booking_id: int,
) -> tuple[Booking, PickupEvent]:
    booking = await booking_repo.get_for_update(booking_id)
    if booking is None:
        raise NotFoundError("Booking not found.")
    event = await event_repo.get(booking.pickup_event_id)
    if event is None:
        raise NotFoundError("Event not found.")
    await booking_repo.delete(booking)
    return booking, event


async def list_event_bookings(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    *,
    event_id: int,
) -> list[Booking]:
    event = await event_repo.get(event_id)
    if event is None:
        raise NotFoundError("Event not found.")
    bookings = await booking_repo.list_for_event(event.id)
    return sorted(bookings, key=lambda b: (b.pickup_time, b.id))


@dataclass(frozen=True)
class Roster:
    """Every booking of one event, for the organisation that runs it."""

    event: PickupEvent
    bookings: list[Booking]

    @property
    def booking_count(self) -> int:
        return len(self.bookings)

    @property
    def people_count(self) -> int:
        return sum(booking.party_size for booking in self.bookings)


async def event_roster(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    *,
    event_id: int,
    actor_id: int,
) -> Roster:
    event = await event_repo.get(event_id)
    if event is None:
        raise NotFoundError("Event not found.")
    if event.organisation_id != actor_id:
        raise ForbiddenError()
    bookings = await booking_repo.list_for_event(event.id)
    return Roster(event=event, bookings=sorted(bookings, key=lambda b: (b.pickup_time, b.id)))


async def admin_booking(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    *,
    booking_id: int,
    actor_id: int,
) -> tuple[Booking, PickupEvent]:
    booking = await booking_repo.get(booking_id)
    if booking is None:
        raise NotFoundError("Booking not found.")
    event = await event_repo.get(booking.pickup_event_id)
    if event is None:
        raise NotFoundError("Event not found.")
    if event.organisation_id != actor_id:
        raise ForbiddenError()
    return booking, event


async def event_availability(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    *,
    event_id: int,
) -> tuple[PickupEvent, CapacityLedger]:
    event = await event_repo.get(event_id)
    if event is None:
        raise NotFoundError("Event not found.")
    ledger = build_ledger(
        enumerate_slots(event.start_time, event.end_time, event.interval_minutes),
        event.capacity,
        await booking_repo.list_for_event(event.id),
    )
    return event, ledger


async def find_bookings(
    booking_repo: BookingRepository,
    *,
    organisation_id: int,
    pickup_date: date,
    phone: str,
) -> list[tuple[Booking, PickupEvent]]:
    phone = phone.strip()
    if not phone:
        return []
    return await booking_repo.find_by_phone(organisation_id, pickup_date, phone)
