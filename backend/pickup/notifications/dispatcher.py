"""
Post-commit notification hooks.

Hooks run after the booking transaction has committed, usually from a FastAPI
background task. A failing hook is logged and never reaches the caller, so
notification delivery cannot change the outcome of a booking.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time
from enum import StrEnum
from typing import Awaitable, Callable, Iterable, Optional

from ..models import Booking, Organisation, PickupEvent

logger = logging.getLogger(__name__)


class NoticeKind(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class BookingNotice:
    kind: NoticeKind
    organisation_name: str
    admin_phone: Optional[str]
    event_title: str
    pickup_date: date
    pickup_time: time
    member_name: str
    member_phone: str
    address: str
    party_size: int

    @classmethod
    def from_db(
        cls,
        kind: NoticeKind,
        *,
        booking: Booking,
        event: PickupEvent,
        organisation: Organisation | None,
    ) -> "BookingNotice":
        return cls(
            kind=kind,
            organisation_name=organisation.name if organisation else "",
            admin_phone=organisation.notification_phone if organisation else None,
            event_title=event.title,
            pickup_date=event.pickup_date,
            pickup_time=booking.pickup_time,
            member_name=booking.name,
            member_phone=booking.phone,
            address=booking.address,
            party_size=booking.party_size,
        )


NotificationHook = Callable[[BookingNotice], Awaitable[None]]


class NotificationDispatcher:
    def __init__(self, hooks: Iterable[NotificationHook] = ()) -> None:
        self._hooks: list[NotificationHook] = list(hooks)

    def register(self, hook: NotificationHook) -> None:
        self._hooks.append(hook)

    async def dispatch(self, notice: BookingNotice) -> None:
        for hook in self._hooks:
            try:
                await hook(notice)
            except Exception:
                logger.exception("notification hook %r failed for %s booking", hook, notice.kind.value)
