import logging
from datetime import date
from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import async_session
from .models import Organisation
from .notifications.dispatcher import NotificationDispatcher
from .notifications.sms import SmsSender, sms_hook
from .utils.auth import decode_access_token
from .utils.time import today_in

logger = logging.getLogger(__name__)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_organisation_id(
    authorization: str | None = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> int:
    """Organisation id of the signed-in admin, taken from the bearer token."""
    if authorization is None:
        raise _unauthorized("Authorization header required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Bearer token required")

    settings = get_settings()
    try:
        organisation_id = decode_access_token(
            token.strip(),
            secret=settings.auth_secret,
            algorithms=[settings.auth_algorithm],
        )
    except ValueError as exc:
        raise _unauthorized("Invalid or expired token") from exc

    try:
        exists = await session.scalar(select(Organisation.id).where(Organisation.id == organisation_id))
    except ProgrammingError as exc:
        logger.exception("organisation lookup failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal error") from exc
    finally:
        # End the autobegun read so the route can open its own transaction.
        await session.rollback()
    if exists is None:
        raise _unauthorized("Unknown organisation")
    return organisation_id


def get_today() -> date:
    return today_in(get_settings().reference_timezone)


@lru_cache
def get_dispatcher() -> NotificationDispatcher:
    dispatcher = NotificationDispatcher()
    dispatcher.register(sms_hook(SmsSender.from_settings(get_settings())))
    return dispatcher
