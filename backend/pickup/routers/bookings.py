from datetime import date
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_organisation_id, get_dispatcher, get_session, get_today
from ..domain.errors import BookingError, DuplicatePhoneError
from ..infrastructure.repositories import (
    SqlAlchemyBookingRepository,
    SqlAlchemyEventRepository,
    SqlAlchemyOrganisationRepository,
)
from ..notifications.dispatcher import BookingNotice, NoticeKind, NotificationDispatcher
from ..schemas import (
    BookingCreate,
    BookingCreated,
    BookingLookup,
    BookingLookupResult,
    BookingSlotRead,
    BookingUpdate,
    EventAvailability,
    EventRoster,
    Ok,
)
from ..usecases import bookings as booking_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.ids import format_identifier
from .errors import internal_error, parse_id, to_http

router = APIRouter(prefix="", tags=["bookings"])


@router.post("/events/{event_id}/bookings", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
async def create_booking(
    event_id: str,
    payload: BookingCreate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    today: date = Depends(get_today),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> BookingCreated:
    event_pk = parse_id(event_id, label="event")
    event_repo = SqlAlchemyEventRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    org_repo = SqlAlchemyOrganisationRepository(session)
    try:
        async with session.begin():
            booking, event = await booking_usecase.create_booking(
                event_repo,
                booking_repo,
                event_id=event_pk,
                name=payload.name,
                phone=payload.phone,
                address=payload.address,
                pickup_time=payload.pickup_time,
                party_size=payload.party_size,
                today=today,
            )
            organisation = await org_repo.get(event.organisation_id)
            emit_audit_log(
                action="booking.created",
                initiator="member",
                event_id=event.id,
                organisation_id=event.organisation_id,
                booking_id=booking.id,
                pickup_time=booking.pickup_time,
                party_size=booking.party_size,
            )
    except BookingError as exc:
        raise to_http(exc)
    except IntegrityError:
        # Unique (event, phone) backstop.
        raise to_http(DuplicatePhoneError())
    except RuntimeError:
        raise internal_error("Unexpected error while saving booking.")

    notice = BookingNotice.from_db(NoticeKind.CREATED, booking=booking, event=event, organisation=organisation)
    background_tasks.add_task(dispatcher.dispatch, notice)
    return BookingCreated(booking_id=format_identifier(booking.id))


@router.get("/events/{event_id}/bookings", response_model=List[BookingSlotRead])
async def list_event_bookings(
    event_id: str,
    session: AsyncSession = Depends(get_session),
) -> list[BookingSlotRead]:
    event_pk = parse_id(event_id, label="event")
    try:
        bookings = await booking_usecase.list_event_bookings(
            SqlAlchemyEventRepository(session),
            SqlAlchemyBookingRepository(session),
            event_id=event_pk,
        )
    except BookingError as exc:
        raise to_http(exc)
    return [BookingSlotRead.from_db(booking=booking) for booking in bookings]


@router.get("/events/{event_id}/roster", response_model=EventRoster)
async def event_roster(
    event_id: str,
    session: AsyncSession = Depends(get_session),
    actor_id: int = Depends(get_current_organisation_id),
) -> EventRoster:
    event_pk = parse_id(event_id, label="event")
    try:
        roster = await booking_usecase.event_roster(
            SqlAlchemyEventRepository(session),
            SqlAlchemyBookingRepository(session),
            event_id=event_pk,
            actor_id=actor_id,
        )
    except BookingError as exc:
        raise to_http(exc)
    return EventRoster.from_roster(roster)


@router.get("/events/{event_id}/availability", response_model=EventAvailability)
async def event_availability(
    event_id: str,
    session: AsyncSession = Depends(get_session),
) -> EventAvailability:
    event_pk = parse_id(event_id, label="event")
    try:
        event, ledger = await booking_usecase.event_availability(
            SqlAlchemyEventRepository(session),
            SqlAlchemyBookingRepository(session),
            event_id=event_pk,
        )
    except BookingError as exc:
        raise to_http(exc)
    return EventAvailability.from_ledger(event=event, ledger=ledger)


@router.get("/bookings/{booking_id}", response_model=BookingLookupResult)
async def get_booking(
    booking_id: str,
    session: AsyncSession = Depends(get_session),
    actor_id: int = Depends(get_current_organisation_id),
) -> BookingLookupResult:
    booking_pk = parse_id(booking_id, label="booking")
    try:
        booking, event = await booking_usecase.admin_booking(
            SqlAlchemyEventRepository(session),
            SqlAlchemyBookingRepository(session),
            booking_id=booking_pk,
            actor_id=actor_id,
        )
    except BookingError as exc:
        raise to_http(exc)
    return BookingLookupResult.from_db(booking=booking, event=event)


@router.put("/bookings/{booking_id}", response_model=Ok)
async def edit_booking(
    booking_id: str,
    payload: BookingUpdate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    today: date = Depends(get_today),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Ok:
    booking_pk = parse_id(booking_id, label="booking")
    event_repo = SqlAlchemyEventRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    org_repo = SqlAlchemyOrganisationRepository(session)
    try:
        async with session.begin():
            booking, event, previous_time = await booking_usecase.edit_booking(
                event_repo,
                booking_repo,
                booking_id=booking_pk,
                name=payload.name,
                phone=payload.phone,
                address=payload.address,
                pickup_time=payload.pickup_time,
                party_size=payload.party_size,
                today=today,
            )
            organisation = await org_repo.get(event.organisation_id)
            emit_audit_log(
                action="booking.updated",
                initiator="member",
                event_id=event.id,
                organisation_id=event.organisation_id,
                booking_id=booking.id,
                pickup_time=booking.pickup_time,
                party_size=booking.party_size,
                extra={"pickup_time_from": previous_time},
            )
    except BookingError as exc:
        raise to_http(exc)
    except IntegrityError:
        raise to_http(DuplicatePhoneError("Another booking already exists for this event with that phone number."))
    except RuntimeError:
        raise internal_error("Unexpected error while updating booking.")

    notice = BookingNotice.from_db(NoticeKind.UPDATED, booking=booking, event=event, organisation=organisation)
    background_tasks.add_task(dispatcher.dispatch, notice)
    return Ok()


@router.post("/bookings/{booking_id}/cancel", response_model=Ok)
async def cancel_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Ok:
    booking_pk = parse_id(booking_id, label="booking")
    booking_repo = SqlAlchemyBookingRepository(session)
    event_repo = SqlAlchemyEventRepository(session)
    org_repo = SqlAlchemyOrganisationRepository(session)
    try:
        async with session.begin():
            booking, event = await booking_usecase.cancel_booking(booking_repo, event_repo, booking_id=booking_pk)
            organisation = await org_repo.get(event.organisation_id)
            emit_audit_log(
                action="booking.cancelled",
                initiator="member",
                event_id=event.id,
                organisation_id=event.organisation_id,
                booking_id=booking.id,
                pickup_time=booking.pickup_time,
                party_size=booking.party_size,
            )
    except BookingError as exc:
        raise to_http(exc)
    except RuntimeError:
        raise internal_error("Unexpected error while cancelling booking.")

    notice = BookingNotice.from_db(NoticeKind.CANCELLED, booking=booking, event=event, organisation=organisation)
    background_tasks.add_task(dispatcher.dispatch, notice)
    return Ok()


@router.post("/bookings/lookup", response_model=List[BookingLookupResult])
async def lookup_bookings(
    payload: BookingLookup,
    session: AsyncSession = Depends(get_session),
) -> list[BookingLookupResult]:
    organisation_pk = parse_id(payload.organisation_id, label="organisation")
    rows = await booking_usecase.find_bookings(
        SqlAlchemyBookingRepository(session),
        organisation_id=organisation_pk,
        pickup_date=payload.pickup_date,
        phone=payload.phone,
    )
    return [BookingLookupResult.from_db(booking=booking, event=event) for booking, event in rows]
