"""SMS delivery through the TxtLocal HTTP API."""
from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from ..config import Settings
from .dispatcher import BookingNotice, NoticeKind, NotificationHook

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


class SmsError(Exception):
    pass


class SmsSender:
    """Sends one text message per call. No-op when no API key is configured."""

    def __init__(
        self,
        *,
        api_key: str,
        sender: str,
        url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._url = url
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmsSender":
        return cls(api_key=settings.txtlocal_api_key, sender=settings.txtlocal_sender, url=settings.txtlocal_url)

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def send(self, to: str | None, message: str) -> bool:
        number = _WHITESPACE.sub("", to or "")
        if not number:
            return False
        if not self.is_configured():
            logger.warning("TXTLOCAL_API_KEY not set; SMS not sent")
            return False
        data = {"apikey": self._api_key, "numbers": number, "sender": self._sender, "message": message}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(self._url, data=data)
        if not resp.is_success:
            raise SmsError(f"TxtLocal HTTP error: {resp.status_code}")
        body: dict[str, Any] = resp.json() if resp.content else {}
        if body.get("status") != "success":
            raise SmsError(f"TxtLocal rejected message: {body.get('errors') or body}")
        return True


def _when(notice: BookingNotice) -> str:
    return f"{notice.pickup_date.strftime('%a %d %b %Y')} at {notice.pickup_time.strftime('%H:%M')}"


def member_message(notice: BookingNotice) -> str:
    when = _when(notice)
    if notice.kind == NoticeKind.CREATED:
        return (
            f"Your pickup is booked: {notice.organisation_name} - {notice.event_title} "
            f"on {when} for {notice.party_size} person(s)."
        )
    if notice.kind == NoticeKind.UPDATED:
        return (
            f"Your pickup booking has been updated: {notice.event_title} "
            f"on {when} for {notice.party_size} person(s)."
        )
    return (
        f"Your pickup booking has been cancelled: {notice.event_title} "
        f"on {when} for {notice.party_size} person(s)."
    )


def admin_message(notice: BookingNotice) -> str:
    who = f"{notice.member_name} ({notice.member_phone})"
    when = _when(notice)
    if notice.kind == NoticeKind.CREATED:
        return (
            f"New pickup booking for {notice.organisation_name}: {who} on {when}, "
            f"party size {notice.party_size}, address: {notice.address}."
        )
    if notice.kind == NoticeKind.UPDATED:
        return f"Booking updated: {who} for {notice.event_title} on {when}, party size {notice.party_size}."
    return f"Booking cancelled: {who} for {notice.event_title} on {when}, party size {notice.party_size}."


def sms_hook(sender: SmsSender) -> NotificationHook:
    async def _send(notice: BookingNotice) -> None:
        await sender.send(notice.member_phone, member_message(notice))
        if notice.admin_phone:
            await sender.send(notice.admin_phone, admin_message(notice))

    return _send
