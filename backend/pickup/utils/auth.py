"""Admin session tokens. The subject is the organisation the admin signs in for."""
from datetime import datetime, timedelta, timezone
from typing import Sequence

import jwt
from jwt import InvalidTokenError

from .ids import parse_identifier

ADMIN_SCOPE = "organisation:admin"
DEFAULT_TOKEN_LIFETIME = timedelta(days=7)


def create_access_token(
    *,
    organisation_id: int,
    secret: str,
    algorithm: str = "HS256",
    expires_delta: timedelta | None = None,
) -> str:
    issued = datetime.now(timezone.utc)
    claims = {
        "sub": str(organisation_id),
        "scope": ADMIN_SCOPE,
        "iat": issued,
        "exp": issued + (expires_delta or DEFAULT_TOKEN_LIFETIME),
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_access_token(
    token: str,
    *,
    secret: str,
    algorithms: Sequence[str],
) -> int:
    """Return the organisation id carried by an admin token, or raise ValueError."""
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=list(algorithms),
            options={"require": ["sub", "exp"]},
        )
    except InvalidTokenError as exc:
        raise ValueError("invalid token") from exc

    if claims.get("scope") != ADMIN_SCOPE:
        raise ValueError("token is not an admin token")
    return parse_identifier(claims["sub"])
