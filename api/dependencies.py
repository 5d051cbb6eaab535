"""FastAPI dependencies for dependency injection."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.config import settings
from core.errors import Unauthenticated
from core.integrations.notifier import Notifier
from core.integrations.scoring import ScoringOracle
from core.locks import build_lock_manager
from core.permissions import Actor
from core.policy import CompanyPolicy
from core.security import decode_access_token
from database.engine import get_db  # noqa: F401  re-exported for routes


security = HTTPBearer(auto_error=False)


async def get_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Actor:
    """Resolve the calling actor from the bearer token."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Authentication required")
    return decode_access_token(credentials.credentials)


def get_policy() -> CompanyPolicy:
    return CompanyPolicy.from_settings(settings)


def get_lock_manager(request: Request):
    """Interviewer lock manager created at startup."""
    locks = getattr(request.app.state, "locks", None)
    if locks is None:
        locks = build_lock_manager(settings)
        request.app.state.locks = locks
    return locks


def get_notifier(request: Request) -> Notifier:
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        notifier = Notifier.from_settings(settings)
        request.app.state.notifier = notifier
    return notifier


def get_scoring_oracle(request: Request) -> Optional[ScoringOracle]:
    if not hasattr(request.app.state, "scoring_oracle"):
        request.app.state.scoring_oracle = ScoringOracle.from_settings(settings)
    return request.app.state.scoring_oracle


def get_default_duration() -> int:
    return settings.default_interview_duration
