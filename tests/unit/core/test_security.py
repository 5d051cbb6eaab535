"""
Tests for bearer token handling and the permission table.
"""

from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from core.config import settings
from core.errors import Forbidden, Unauthenticated
from core.permissions import (
    Actor,
    Permission,
    Role,
    can_perform,
    ensure_can,
)
from core.security import create_access_token, decode_access_token


class TestTokens:

    def test_round_trip(self):
        token = create_access_token(42, Role.HR, staff_verified=True)

        actor = decode_access_token(token)

        assert actor == Actor(actor_id=42, role=Role.HR, verified_staff=True)

    def test_role_accepts_string(self):
        actor = decode_access_token(create_access_token(7, "candidate"))

        assert actor.role == Role.CANDIDATE
        assert actor.verified_staff is False

    def test_expired_token(self):
        token = create_access_token(42, Role.HR, expires_delta=timedelta(seconds=-1))

        with pytest.raises(Unauthenticated, match="expired"):
            decode_access_token(token)

    def test_wrong_signature(self):
        token = pyjwt.encode(
            {
                "sub": "42",
                "role": "admin",
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
            },
            "some-other-secret-that-is-long-enough",
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(Unauthenticated):
            decode_access_token(token)

    def test_missing_role_claim(self):
        token = pyjwt.encode(
            {"sub": "42", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(Unauthenticated):
            decode_access_token(token)

    def test_unknown_role(self):
        token = pyjwt.encode(
            {
                "sub": "42",
                "role": "superuser",
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
            },
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(Unauthenticated, match="claims"):
            decode_access_token(token)

    def test_garbage_token(self):
        with pytest.raises(Unauthenticated):
            decode_access_token("not-a-token")


class TestPermissions:

    @pytest.mark.parametrize("permission", list(Permission))
    def test_admin_holds_everything(self, permission):
        assert can_perform(Role.ADMIN, permission)

    @pytest.mark.parametrize("role,permission,expected", [
        (Role.CANDIDATE, Permission.APPLICATION_APPLY, True),
        (Role.CANDIDATE, Permission.INTERVIEW_RESPOND, True),
        (Role.CANDIDATE, Permission.INTERVIEW_SCHEDULE, False),
        (Role.CANDIDATE, Permission.JOB_CREATE, False),
        (Role.RECRUITER, Permission.INTERVIEW_SCHEDULE, True),
        (Role.RECRUITER, Permission.INTERVIEW_DECIDE, False),
        (Role.RECRUITER, Permission.JOB_CANCEL, False),
        (Role.HIRING_MANAGER, Permission.INTERVIEW_DECIDE, True),
        (Role.HIRING_MANAGER, Permission.INTERVIEW_FEEDBACK_ANY, False),
        (Role.HR, Permission.INTERVIEW_FEEDBACK_ANY, True),
        (Role.HR, Permission.APPLICATION_OVERRIDE, False),
    ])
    def test_role_table(self, role, permission, expected):
        assert can_perform(role, permission) is expected

    def test_ensure_can_raises_forbidden(self):
        actor = Actor(actor_id=5, role=Role.CANDIDATE)

        with pytest.raises(Forbidden) as exc_info:
            ensure_can(actor, Permission.JOB_CREATE)

        assert exc_info.value.status_code == 403
        assert exc_info.value.details["permission"] == "job:create"

    def test_staff_flag(self):
        assert Actor(actor_id=1, role=Role.RECRUITER).is_staff
        assert not Actor(actor_id=1, role=Role.CANDIDATE).is_staff
