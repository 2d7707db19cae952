from datetime import date, time
from typing import Sequence

from ..domain.errors import ForbiddenError, InvalidEventConfigError, NotFoundError
from ..domain.lifecycle import BookingsState, check_reconfiguration, validate_event_config
from ..domain.repositories import BookingRepository, EventRepository, OrganisationRepository
from ..models import PickupEvent


def _ensure_owner(event: PickupEvent, actor_id: int) -> None:
    if event.organisation_id != actor_id:
        raise ForbiddenError()


async def _owned_event_for_update(event_repo: EventRepository, event_id: int, actor_id: int) -> PickupEvent:
    event = await event_repo.get_for_update(event_id)
    if event is None:
        raise NotFoundError("Event not found.")
    _ensure_owner(event, actor_id)
    return event


async def create_events(
    org_repo: OrganisationRepository,
    event_repo: EventRepository,
    *,
    organisation_id: int,
    actor_id: int,
    title: str,
    dates: Sequence[date],
    capacity: int,
    start_time: time,
    end_time: time,
    interval_minutes: int,
) -> list[PickupEvent]:
    """Create one event per distinct date, returned in date order."""
    if organisation_id != actor_id:
        raise ForbiddenError()
    organisation = await org_repo.get(organisation_id)
    if organisation is None:
        raise NotFoundError("Organisation not found.")

    title = title.strip()
    validate_event_config(
        title=title,
        capacity=capacity,
        start_time=start_time,
        end_time=end_time,
        interval_minutes=interval_minutes,
    )
    unique_dates = sorted(set(dates))
    if not unique_dates:
        raise InvalidEventConfigError("Choose at least one pickup date.")

    return await event_repo.create_many(
        organisation_id=organisation.id,
        title=title,
        dates=unique_dates,
        capacity=capacity,
        start_time=start_time,
        end_time=end_time,
        interval_minutes=interval_minutes,
    )


async def update_event(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    *,
    event_id: int,
    actor_id: int,
    title: str,
    pickup_date: date,
    capacity: int,
    start_time: time,
    end_time: time,
    interval_minutes: int,
) -> PickupEvent:
    title = title.strip()
    validate_event_config(
        title=title,
        capacity=capacity,
        start_time=start_time,
        end_time=end_time,
        interval_minutes=interval_minutes,
    )
    event = await _owned_event_for_update(event_repo, event_id, actor_id)
    check_reconfiguration(
        capacity=capacity,
        start_time=start_time,
        end_time=end_time,
        interval_minutes=interval_minutes,
        bookings=await booking_repo.list_for_event(event.id),
    )

    event.title = title
    event.pickup_date = pickup_date
    event.capacity = capacity
    event.start_time = start_time
    event.end_time = end_time
    event.interval_minutes = interval_minutes
    return await event_repo.save(event)


async def set_bookings_state(
    event_repo: EventRepository,
    *,
    event_id: int,
    actor_id: int,
    open: bool,
) -> tuple[PickupEvent, BookingsState]:
    """Open or pause bookings. Returns the event and its previous state."""
    event = await _owned_event_for_update(event_repo, event_id, actor_id)
    previous = event.bookings_state
    event.bookings_state = BookingsState.OPEN if open else BookingsState.PAUSED
    return await event_repo.save(event), previous


async def delete_event(
    event_repo: EventRepository,
    *,
    event_id: int,
    actor_id: int,
) -> tuple[PickupEvent, int]:
    """Delete the event and all of its bookings. Returns the event and the bookings removed."""
    event = await _owned_event_for_update(event_repo, event_id, actor_id)
    removed = await event_repo.delete_with_bookings(event)
    return event, removed


async def list_upcoming_events(
    event_repo: EventRepository,
    *,
    organisation_id: int,
    today: date,
) -> list[PickupEvent]:
    return await event_repo.list_upcoming(organisation_id, today)
