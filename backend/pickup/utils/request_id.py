from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Optional

REQUEST_ID_HEADER = "X-Request-ID"

# Incoming ids end up in audit lines, so only short opaque tokens are echoed.
_ACCEPTED_ID = re.compile(r"[A-Za-z0-9._-]{1,128}")

_request_id_ctx: ContextVar[str | None] = ContextVar("pickup_request_id", default=None)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def resolve_request_id(incoming: str | None) -> str:
    """Echo a well-formed client id, otherwise mint a new one."""
    candidate = (incoming or "").strip()
    if _ACCEPTED_ID.fullmatch(candidate):
        return candidate
    return generate_request_id()


def set_request_id(request_id: str | None) -> None:
    _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()
