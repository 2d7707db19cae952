from datetime import date, time
from typing import Any

import pytest
from pickup.domain.errors import ForbiddenError, InvalidEventConfigError, NotFoundError
from pickup.domain.lifecycle import BookingsState
from pickup.usecases import events as uc


def _event_fields(**overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "title": "Sunday service",
        "capacity": 3,
        "start_time": time(9, 0),
        "end_time": time(10, 0),
        "interval_minutes": 20,
    }
    values.update(overrides)
    return values


@pytest.mark.asyncio
async def test_create_events_one_per_distinct_date(store: Any) -> None:
    org = store.add_organisation()
    dates = [date(2025, 6, 8), date(2025, 6, 1), date(2025, 6, 8)]
    async with store.transaction() as (events, _, orgs):
        created = await uc.create_events(
            orgs, events, organisation_id=org.id, actor_id=org.id, dates=dates, **_event_fields(title=" Sunday service ")
        )
    assert [e.pickup_date for e in created] == [date(2025, 6, 1), date(2025, 6, 8)]
    assert all(e.title == "Sunday service" for e in created)
    assert all(e.bookings_state == BookingsState.OPEN for e in created)


@pytest.mark.asyncio
async def test_create_events_for_other_organisation_is_forbidden(store: Any) -> None:
    org = store.add_organisation()
    other = store.add_organisation(slug="hope", name="Hope Chapel")
    async with store.transaction() as (events, _, orgs):
        with pytest.raises(ForbiddenError):
            await uc.create_events(
                orgs, events, organisation_id=other.id, actor_id=org.id, dates=[date(2025, 6, 1)], **_event_fields()
            )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [{"capacity": 0}, {"interval_minutes": -5}, {"end_time": time(9, 0)}, {"title": ""}, {"dates": []}],
)
async def test_create_events_rejects_invalid_config(store: Any, overrides: dict[str, Any]) -> None:
    org = store.add_organisation()
    fields = _event_fields(dates=[date(2025, 6, 1)])
    fields.update(overrides)
    async with store.transaction() as (events, _, orgs):
        with pytest.raises(InvalidEventConfigError):
            await uc.create_events(orgs, events, organisation_id=org.id, actor_id=org.id, **fields)
    assert store.events == {}


@pytest.mark.asyncio
async def test_update_event_changes_window(store: Any) -> None:
    org = store.add_organisation()
    event = store.add_event(organisation_id=org.id)
    store.add_booking(event_id=event.id, pickup_time=time(8, 0), party_size=2)
    async with store.transaction() as (events, bookings, _):
        updated = await uc.update_event(
            events,
            bookings,
            event_id=event.id,
            actor_id=org.id,
            pickup_date=date(2025, 7, 1),
            **_event_fields(start_time=time(7, 0), end_time=time(9, 0), interval_minutes=30, capacity=4),
        )
    assert updated.pickup_date == date(2025, 7, 1)
    assert (updated.start_time, updated.end_time, updated.interval_minutes, updated.capacity) == (
        time(7, 0),
        time(9, 0),
        30,
        4,
    )


@pytest.mark.asyncio
async def test_update_event_rejects_stranding_bookings(store: Any) -> None:
    org = store.add_organisation()
    event = store.add_event(organisation_id=org.id)
    store.add_booking(event_id=event.id, pickup_time=time(8, 20))
    async with store.transaction() as (events, bookings, _):
        with pytest.raises(InvalidEventConfigError):
            await uc.update_event(
                events,
                bookings,
                event_id=event.id,
                actor_id=org.id,
                pickup_date=event.pickup_date,
                **_event_fields(start_time=time(8, 0), end_time=time(9, 0), interval_minutes=30),
            )
    assert event.interval_minutes == 20


@pytest.mark.asyncio
async def test_update_event_checks_owner_and_existence(store: Any) -> None:
    org = store.add_organisation()
    other = store.add_organisation(slug="hope", name="Hope Chapel")
    event = store.add_event(organisation_id=org.id)
    async with store.transaction() as (events, bookings, _):
        with pytest.raises(ForbiddenError):
            await uc.update_event(
                events, bookings, event_id=event.id, actor_id=other.id, pickup_date=event.pickup_date, **_event_fields()
            )
    async with store.transaction() as (events, bookings, _):
        with pytest.raises(NotFoundError):
            await uc.update_event(
                events, bookings, event_id=999, actor_id=org.id, pickup_date=event.pickup_date, **_event_fields()
            )


@pytest.mark.asyncio
async def test_toggle_bookings_state(store: Any) -> None:
    org = store.add_organisation()
    event = store.add_event(organisation_id=org.id)
    async with store.transaction() as (events, _, _orgs):
        paused, previous = await uc.set_bookings_state(events, event_id=event.id, actor_id=org.id, open=False)
    assert previous == BookingsState.OPEN
    assert paused.bookings_state == BookingsState.PAUSED
    async with store.transaction() as (events, _, _orgs):
        reopened, previous = await uc.set_bookings_state(events, event_id=event.id, actor_id=org.id, open=True)
    assert previous == BookingsState.PAUSED
    assert reopened.bookings_state == BookingsState.OPEN


@pytest.mark.asyncio
async def test_delete_event_cascades_bookings(store: Any) -> None:
    org = store.add_organisation()
    event = store.add_event(organisation_id=org.id, capacity=5)
    keep = store.add_event(organisation_id=org.id, capacity=5)
    for slot in (time(8, 0), time(8, 20), time(8, 40)):
        store.add_booking(event_id=event.id, pickup_time=slot)
    survivor = store.add_booking(event_id=keep.id, pickup_time=time(8, 0))

    async with store.transaction() as (events, _, _orgs):
        _, removed = await uc.delete_event(events, event_id=event.id, actor_id=org.id)

    assert removed == 3
    assert event.id not in store.events
    assert [b.id for b in store.bookings.values() if b.pickup_event_id == event.id] == []
    assert survivor.id in store.bookings


@pytest.mark.asyncio
async def test_delete_event_of_other_organisation_is_forbidden(store: Any) -> None:
    org = store.add_organisation()
    other = store.add_organisation(slug="hope", name="Hope Chapel")
    event = store.add_event(organisation_id=org.id)
    store.add_booking(event_id=event.id, pickup_time=time(8, 0))
    async with store.transaction() as (events, _, _orgs):
        with pytest.raises(ForbiddenError):
            await uc.delete_event(events, event_id=event.id, actor_id=other.id)
    assert event.id in store.events
    assert len(store.bookings) == 1


@pytest.mark.asyncio
async def test_list_upcoming_events_excludes_past(store: Any) -> None:
    org = store.add_organisation()
    store.add_event(organisation_id=org.id, pickup_date=date(2025, 4, 30))
    today_event = store.add_event(organisation_id=org.id, pickup_date=date(2025, 5, 1))
    later = store.add_event(organisation_id=org.id, pickup_date=date(2025, 5, 8))
    async with store.transaction() as (events, _, _orgs):
        rows = await uc.list_upcoming_events(events, organisation_id=org.id, today=date(2025, 5, 1))
    assert [e.id for e in rows] == [today_event.id, later.id]
