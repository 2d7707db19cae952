from datetime import date, time
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from .domain.ledger import CapacityLedger, low_seats_threshold
from .domain.lifecycle import BookingsState
from .domain.slots import format_clock
from .models import Booking, Organisation, PickupEvent
from .usecases.bookings import Roster
from .utils.ids import format_identifier


def _required_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _wall_clock(value: time) -> time:
    # Slot times are wall-clock times on the event date; an offset is dropped, not converted.
    return value.replace(tzinfo=None)


class BookingCreate(BaseModel):
    name: str
    phone: str
    address: str
    pickup_time: time
    party_size: int = Field(default=1, ge=1)

    @field_validator("name", "phone", "address")
    @classmethod
    def _required(cls, value: str) -> str:
        return _required_text(value)

    @field_validator("pickup_time")
    @classmethod
    def _naive_clock(cls, value: time) -> time:
        return _wall_clock(value)


class BookingUpdate(BookingCreate):
    pass


class BookingCreated(BaseModel):
    booking_id: str


class BookingSlotRead(BaseModel):
    id: str
    pickup_time: time
    party_size: int

    @field_serializer("pickup_time")
    def _ser_time(self, value: time) -> str:
        return format_clock(value)

    @classmethod
    def from_db(cls, *, booking: Booking) -> "BookingSlotRead":
        return cls(id=format_identifier(booking.id), pickup_time=booking.pickup_time, party_size=booking.party_size)


class BookingLookup(BaseModel):
    organisation_id: str
    pickup_date: date
    phone: str


class EventRead(BaseModel):
    id: str
    organisation_id: str
    title: str
    pickup_date: date
    capacity: int
    start_time: time
    end_time: time
    interval_minutes: int
    bookings_state: BookingsState

    @field_serializer("start_time", "end_time")
    def _ser_time(self, value: time) -> str:
        return format_clock(value)

    @classmethod
    def from_db(cls, *, event: PickupEvent) -> "EventRead":
        return cls(
            id=format_identifier(event.id),
            organisation_id=format_identifier(event.organisation_id),
            title=event.title,
            pickup_date=event.pickup_date,
            capacity=event.capacity,
            start_time=event.start_time,
            end_time=event.end_time,
            interval_minutes=event.interval_minutes,
            bookings_state=event.bookings_state,
        )


class BookingRead(BaseModel):
    id: str
    event_id: str
    name: str
    phone: str
    address: str
    pickup_time: time
    party_size: int

    @field_serializer("pickup_time")
    def _ser_time(self, value: time) -> str:
        return format_clock(value)

    @classmethod
    def from_db(cls, *, booking: Booking) -> "BookingRead":
        return cls(
            id=format_identifier(booking.id),
            event_id=format_identifier(booking.pickup_event_id),
            name=booking.name,
            phone=booking.phone,
            address=booking.address,
            pickup_time=booking.pickup_time,
            party_size=booking.party_size,
        )


class BookingLookupResult(BaseModel):
    booking: BookingRead
    event: EventRead

    @classmethod
    def from_db(cls, *, booking: Booking, event: PickupEvent) -> "BookingLookupResult":
        return cls(
            booking=BookingRead.from_db(booking=booking),
            event=EventRead.from_db(event=event),
        )


class EventRoster(BaseModel):
    event: EventRead
    bookings: List[BookingRead]
    booking_count: int
    people_count: int

    @classmethod
    def from_roster(cls, roster: Roster) -> "EventRoster":
        return cls(
            event=EventRead.from_db(event=roster.event),
            bookings=[BookingRead.from_db(booking=booking) for booking in roster.bookings],
            booking_count=roster.booking_count,
            people_count=roster.people_count,
        )


class SlotAvailability(BaseModel):
    pickup_time: time
    used: int
    remaining: int
    is_full: bool
    is_low: bool

    @field_serializer("pickup_time")
    def _ser_time(self, value: time) -> str:
        return format_clock(value)


class EventAvailability(BaseModel):
    event: EventRead
    slots: List[SlotAvailability]
    total_used: int
    total_capacity: int
    is_full: bool

    @classmethod
    def from_ledger(cls, *, event: PickupEvent, ledger: CapacityLedger) -> "EventAvailability":
        threshold = low_seats_threshold(event.capacity)
        return cls(
            event=EventRead.from_db(event=event),
            slots=[
                SlotAvailability(
                    pickup_time=usage.slot,
                    used=usage.used,
                    remaining=usage.remaining,
                    is_full=usage.is_full,
                    is_low=0 < usage.remaining <= threshold,
                )
                for usage in ledger.slots()
            ],
            total_used=ledger.total_used,
            total_capacity=ledger.total_capacity,
            is_full=ledger.is_event_full,
        )


class EventCreate(BaseModel):
    title: str
    dates: List[date] = Field(min_length=1)
    capacity: int
    start_time: time
    end_time: time
    interval_minutes: int

    @field_validator("start_time", "end_time")
    @classmethod
    def _naive_clock(cls, value: time) -> time:
        return _wall_clock(value)


class EventsCreated(BaseModel):
    event_ids: List[str]


class EventUpdate(BaseModel):
    title: str
    pickup_date: date
    capacity: int
    start_time: time
    end_time: time
    interval_minutes: int

    @field_validator("start_time", "end_time")
    @classmethod
    def _naive_clock(cls, value: time) -> time:
        return _wall_clock(value)


class BookingsStateUpdate(BaseModel):
    open: bool


class OrganisationCreate(BaseModel):
    name: str
    slug: str
    notification_phone: Optional[str] = None


class OrganisationSettings(BaseModel):
    notification_phone: Optional[str] = None


class OrganisationRead(BaseModel):
    id: str
    slug: str
    name: str

    @classmethod
    def from_db(cls, *, organisation: Organisation) -> "OrganisationRead":
        return cls(id=format_identifier(organisation.id), slug=organisation.slug, name=organisation.name)


class Ok(BaseModel):
    ok: bool = True
