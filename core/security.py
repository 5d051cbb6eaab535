"""
Bearer token handling.

Tokens are issued by the identity provider. The engine only verifies them
and turns the claims into an ``Actor``:

    sub             actor id
    role            candidate | recruiter | hiring_manager | hr | admin
    staff_verified  true for verified employees (internal job postings)
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from core.config import settings
from core.errors import Unauthenticated
from core.permissions import Actor, Role


def create_access_token(
    actor_id: int,
    role: Role | str,
    staff_verified: bool = False,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign a token for an actor. Used by tooling and tests."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=1))
    payload: dict[str, Any] = {
        "sub": str(actor_id),
        "role": Role(role).value,
        "staff_verified": staff_verified,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Actor:
    """
    Verify a bearer token and build the calling actor.

    Raises:
        Unauthenticated: If the token is expired, malformed or carries bad claims
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "role", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Bearer credentials expired")
    except jwt.InvalidTokenError as e:
        raise Unauthenticated("Invalid access token", reason=str(e))

    try:
        return Actor(
            actor_id=int(payload["sub"]),
            role=Role(payload["role"]),
            verified_staff=bool(payload.get("staff_verified", False)),
        )
    except ValueError as e:
        raise Unauthenticated("Invalid claims in access token", reason=str(e))
