from datetime import date
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_organisation_id, get_session, get_today
from ..domain.errors import BookingError
from ..infrastructure.repositories import (
    SqlAlchemyBookingRepository,
    SqlAlchemyEventRepository,
    SqlAlchemyOrganisationRepository,
)
from ..schemas import BookingsStateUpdate, EventCreate, EventRead, EventsCreated, EventUpdate, Ok
from ..usecases import events as event_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.ids import format_identifier
from .errors import internal_error, parse_id, to_http

router = APIRouter(prefix="", tags=["events"])


@router.get("/organisations/{organisation_id}/events", response_model=List[EventRead])
async def list_upcoming_events(
    organisation_id: str,
    session: AsyncSession = Depends(get_session),
    today: date = Depends(get_today),
) -> list[EventRead]:
    organisation_pk = parse_id(organisation_id, label="organisation")
    events = await event_usecase.list_upcoming_events(
        SqlAlchemyEventRepository(session),
        organisation_id=organisation_pk,
        today=today,
    )
    return [EventRead.from_db(event=event) for event in events]


@router.post(
    "/organisations/{organisation_id}/events",
    response_model=EventsCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_events(
    organisation_id: str,
    payload: EventCreate,
    session: AsyncSession = Depends(get_session),
    actor_id: int = Depends(get_current_organisation_id),
) -> EventsCreated:
    organisation_pk = parse_id(organisation_id, label="organisation")
    org_repo = SqlAlchemyOrganisationRepository(session)
    event_repo = SqlAlchemyEventRepository(session)
    try:
        async with session.begin():
            events = await event_usecase.create_events(
                org_repo,
                event_repo,
                organisation_id=organisation_pk,
                actor_id=actor_id,
                title=payload.title,
                dates=payload.dates,
                capacity=payload.capacity,
                start_time=payload.start_time,
                end_time=payload.end_time,
                interval_minutes=payload.interval_minutes,
            )
            for event in events:
                emit_audit_log(
                    action="event.created",
                    initiator="organisation",
                    event_id=event.id,
                    organisation_id=event.organisation_id,
                    extra={"pickup_date": event.pickup_date},
                )
    except BookingError as exc:
        raise to_http(exc)
    except RuntimeError:
        raise internal_error()
    return EventsCreated(event_ids=[format_identifier(event.id) for event in events])


@router.put("/events/{event_id}", response_model=EventRead)
async def update_event(
    event_id: str,
    payload: EventUpdate,
    session: AsyncSession = Depends(get_session),
    actor_id: int = Depends(get_current_organisation_id),
) -> EventRead:
    event_pk = parse_id(event_id, label="event")
    event_repo = SqlAlchemyEventRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        async with session.begin():
            event = await event_usecase.update_event(
                event_repo,
                booking_repo,
                event_id=event_pk,
                actor_id=actor_id,
                title=payload.title,
                pickup_date=payload.pickup_date,
                capacity=payload.capacity,
                start_time=payload.start_time,
                end_time=payload.end_time,
                interval_minutes=payload.interval_minutes,
            )
            emit_audit_log(
                action="event.updated",
                initiator="organisation",
                event_id=event.id,
                organisation_id=event.organisation_id,
            )
    except BookingError as exc:
        raise to_http(exc)
    except RuntimeError:
        raise internal_error("Unexpected error while updating event.")
    return EventRead.from_db(event=event)


@router.post("/events/{event_id}/bookings-state", response_model=Ok)
async def set_bookings_state(
    event_id: str,
    payload: BookingsStateUpdate,
    session: AsyncSession = Depends(get_session),
    actor_id: int = Depends(get_current_organisation_id),
) -> Ok:
    event_pk = parse_id(event_id, label="event")
    event_repo = SqlAlchemyEventRepository(session)
    try:
        async with session.begin():
            event, previous = await event_usecase.set_bookings_state(
                event_repo,
                event_id=event_pk,
                actor_id=actor_id,
                open=payload.open,
            )
            emit_audit_log(
                action="event.bookings_state_changed",
                initiator="organisation",
                event_id=event.id,
                organisation_id=event.organisation_id,
                extra={"state_from": previous, "state_to": event.bookings_state},
            )
    except BookingError as exc:
        raise to_http(exc)
    except RuntimeError:
        raise internal_error()
    return Ok()


@router.delete("/events/{event_id}", response_model=Ok)
async def delete_event(
    event_id: str,
    session: AsyncSession = Depends(get_session),
    actor_id: int = Depends(get_current_organisation_id),
) -> Ok:
    event_pk = parse_id(event_id, label="event")
    event_repo = SqlAlchemyEventRepository(session)
    try:
        async with session.begin():
            event, removed = await event_usecase.delete_event(event_repo, event_id=event_pk, actor_id=actor_id)
            emit_audit_log(
                action="event.deleted",
                initiator="organisation",
                event_id=event.id,
                organisation_id=event.organisation_id,
                extra={"bookings_removed": removed},
            )
    except BookingError as exc:
        raise to_http(exc)
    except RuntimeError:
        raise internal_error()
    return Ok()
