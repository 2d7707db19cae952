import logging
from datetime import date, time

import pytest
from pickup.models import Booking, Organisation, PickupEvent
from pickup.notifications.dispatcher import BookingNotice, NoticeKind, NotificationDispatcher


def _notice(kind: NoticeKind = NoticeKind.CREATED) -> BookingNotice:
    return BookingNotice(
        kind=kind,
        organisation_name="Grace Church",
        admin_phone="07111 222333",
        event_title="Sunday service",
        pickup_date=date(2025, 6, 1),
        pickup_time=time(8, 20),
        member_name="Ada",
        member_phone="07000 000001",
        address="1 Chapel Road",
        party_size=2,
    )


def test_notice_from_db_copies_booking_details() -> None:
    organisation = Organisation(id=1, slug="grace", name="Grace Church", notification_phone="0711")
    event = PickupEvent(id=2, organisation_id=1, title="Sunday service", pickup_date=date(2025, 6, 1))
    booking = Booking(
        id=3,
        pickup_event_id=2,
        name="Ada",
        phone="0700",
        address="1 Chapel Road",
        pickup_time=time(8, 20),
        party_size=2,
    )
    notice = BookingNotice.from_db(NoticeKind.UPDATED, booking=booking, event=event, organisation=organisation)
    assert notice.kind == NoticeKind.UPDATED
    assert notice.admin_phone == "0711"
    assert notice.pickup_time == time(8, 20)
    assert notice.party_size == 2


@pytest.mark.asyncio
async def test_dispatch_runs_every_hook_in_order() -> None:
    seen: list[str] = []

    async def first(notice: BookingNotice) -> None:
        seen.append(f"first:{notice.kind.value}")

    async def second(notice: BookingNotice) -> None:
        seen.append(f"second:{notice.kind.value}")

    dispatcher = NotificationDispatcher([first])
    dispatcher.register(second)
    await dispatcher.dispatch(_notice(NoticeKind.CANCELLED))
    assert seen == ["first:cancelled", "second:cancelled"]


@pytest.mark.asyncio
async def test_failing_hook_is_logged_and_does_not_stop_others(caplog: pytest.LogCaptureFixture) -> None:
    seen: list[BookingNotice] = []

    async def broken(notice: BookingNotice) -> None:
        raise RuntimeError("gateway down")

    async def working(notice: BookingNotice) -> None:
        seen.append(notice)

    dispatcher = NotificationDispatcher([broken, working])
    with caplog.at_level(logging.ERROR, logger="pickup.notifications.dispatcher"):
        await dispatcher.dispatch(_notice())

    assert len(seen) == 1
    assert any("notification hook" in record.getMessage() for record in caplog.records)
