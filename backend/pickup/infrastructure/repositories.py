from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import List, Sequence, Tuple, cast

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.repositories import BookingRepository, EventRepository, OrganisationRepository
from ..models import Booking, Organisation, PickupEvent


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SqlAlchemyOrganisationRepository(OrganisationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, organisation_id: int) -> Organisation | None:
        return await self.session.get(Organisation, organisation_id)

    async def get_by_slug(self, slug: str) -> Organisation | None:
        result = await self.session.scalar(select(Organisation).where(Organisation.slug == slug))
        return result if isinstance(result, Organisation) else None

    async def create(self, *, slug: str, name: str, notification_phone: str | None) -> Organisation:
        now = _utc_now_naive()
        organisation = Organisation(
            slug=slug,
            name=name,
            notification_phone=notification_phone,
            created_at=now,
            updated_at=now,
        )
        self.session.add(organisation)
        await self.session.flush()
        return organisation

    async def save(self, organisation: Organisation) -> Organisation:
        organisation.updated_at = _utc_now_naive()
        self.session.add(organisation)
        await self.session.flush()
        return organisation

    async def search(self, query: str, limit: int) -> List[Organisation]:
        stmt = (
            select(Organisation)
            .where(Organisation.name.icontains(query, autoescape=True))
            .order_by(Organisation.name)
            .limit(limit)
        )
        return list((await self.session.scalars(stmt)).all())


class SqlAlchemyEventRepository(EventRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, event_id: int) -> PickupEvent | None:
        return await self.session.get(PickupEvent, event_id)

    async def get_for_update(self, event_id: int) -> PickupEvent | None:
        # The event row lock serialises every check-then-write on this event.
        stmt = select(PickupEvent).where(PickupEvent.id == event_id).with_for_update()
        result = await self.session.scalar(stmt.execution_options(populate_existing=True))
        return result if isinstance(result, PickupEvent) else None

    async def get_for_update_by_booking(self, booking_id: int) -> PickupEvent | None:
        # Locks the owning event before anything else in the transaction reads bookings.
        stmt = (
            select(PickupEvent)
            .join(Booking, Booking.pickup_event_id == PickupEvent.id)
            .where(Booking.id == booking_id)
            .with_for_update(of=PickupEvent)
        )
        result = await self.session.scalar(stmt.execution_options(populate_existing=True))
        return result if isinstance(result, PickupEvent) else None

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
    ) -> List[PickupEvent]:
        now = _utc_now_naive()
        events = [
            PickupEvent(
                organisation_id=organisation_id,
                title=title,
                pickup_date=pickup_date,
                capacity=capacity,
                start_time=start_time,
                end_time=end_time,
                interval_minutes=interval_minutes,
                created_at=now,
                updated_at=now,
            )
            for pickup_date in dates
        ]
        self.session.add_all(events)
        await self.session.flush()
        return events

    async def save(self, event: PickupEvent) -> PickupEvent:
        event.updated_at = _utc_now_naive()
        self.session.add(event)
        await self.session.flush()
        return event

    async def delete_with_bookings(self, event: PickupEvent) -> int:
        result = await self.session.execute(delete(Booking).where(Booking.pickup_event_id == event.id))
        await self.session.delete(event)
        await self.session.flush()
        return int(getattr(result, "rowcount", 0) or 0)

    async def list_upcoming(self, organisation_id: int, today: date) -> List[PickupEvent]:
        stmt = (
            select(PickupEvent)
            .where(PickupEvent.organisation_id == organisation_id, PickupEvent.pickup_date >= today)
            .order_by(PickupEvent.pickup_date, PickupEvent.start_time, PickupEvent.id)
        )
        return list((await self.session.scalars(stmt)).all())


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, booking_id: int) -> Booking | None:
        return await self.session.get(Booking, booking_id)

    async def get_for_update(self, booking_id: int) -> Booking | None:
        stmt = select(Booking).where(Booking.id == booking_id).with_for_update()
        result = await self.session.scalar(stmt.execution_options(populate_existing=True))
        return result if isinstance(result, Booking) else None

    async def list_for_event(self, event_id: int) -> List[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.pickup_event_id == event_id)
            .order_by(Booking.pickup_time, Booking.id)
            .execution_options(populate_existing=True)
        )
        return list((await self.session.scalars(stmt)).all())

    async def phone_taken(self, event_id: int, phone: str, *, exclude_booking_id: int | None = None) -> bool:
        stmt = select(Booking.id).where(Booking.pickup_event_id == event_id, Booking.phone == phone)
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)
        return await self.session.scalar(stmt.limit(1)) is not None

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
        now = _utc_now_naive()
        booking = Booking(
            pickup_event_id=event_id,
            name=name,
            phone=phone,
            address=address,
            pickup_time=pickup_time,
            party_size=party_size,
            created_at=now,
            updated_at=now,
        )
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def save(self, booking: Booking) -> Booking:
        booking.updated_at = _utc_now_naive()
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def delete(self, booking: Booking) -> None:
        await self.session.delete(booking)
        await self.session.flush()

    async def find_by_phone(
        self,
        organisation_id: int,
        pickup_date: date,
        phone: str,
    ) -> List[Tuple[Booking, PickupEvent]]:
        stmt: Select[Tuple[Booking, PickupEvent]] = (
            select(Booking, PickupEvent)
            .join(PickupEvent, Booking.pickup_event_id == PickupEvent.id)
            .where(
                PickupEvent.organisation_id == organisation_id,
                PickupEvent.pickup_date == pickup_date,
                Booking.phone == phone,
            )
            .order_by(Booking.pickup_time, Booking.id)
        )
        rows = await self.session.execute(stmt)
        return cast(List[Tuple[Booking, PickupEvent]], [tuple(row) for row in rows.all()])
