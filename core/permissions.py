"""
Role-based access control for pipeline commands.

The engine never authenticates anyone itself. The identity provider hands it
an ``Actor`` (id + role) and every command calls ``can_perform`` / ``ensure_can``
against the table below before touching state.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Set

from core.errors import Forbidden

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Actor roles known to the pipeline."""

    CANDIDATE = "candidate"
    RECRUITER = "recruiter"
    HIRING_MANAGER = "hiring_manager"
    HR = "hr"
    ADMIN = "admin"


class Permission(str, Enum):
    """Pipeline-wide permissions."""

    # Requisitions
    JOB_CREATE = "job:create"
    JOB_READ = "job:read"
    JOB_SUBMIT = "job:submit"
    JOB_MANAGE = "job:manage"
    JOB_CANCEL = "job:cancel"

    # Applications
    APPLICATION_APPLY = "application:apply"
    APPLICATION_READ = "application:read"
    APPLICATION_UPDATE_STATUS = "application:update_status"
    APPLICATION_WITHDRAW = "application:withdraw"
    APPLICATION_OVERRIDE = "application:override"

    # Interviews
    INTERVIEW_SCHEDULE = "interview:schedule"
    INTERVIEW_READ = "interview:read"
    INTERVIEW_RESPOND = "interview:respond"
    INTERVIEW_MANAGE = "interview:manage"
    INTERVIEW_FEEDBACK_ANY = "interview:feedback_any"
    INTERVIEW_DECIDE = "interview:decide"


_STAFF_READ = {
    Permission.JOB_READ,
    Permission.APPLICATION_READ,
    Permission.INTERVIEW_READ,
}

# Role to permission mapping. Admin is handled separately and holds everything.
ROLE_PERMISSIONS: dict[Role, Set[Permission]] = {
    Role.CANDIDATE: {
        Permission.JOB_READ,
        Permission.APPLICATION_APPLY,
        Permission.APPLICATION_READ,
        Permission.APPLICATION_WITHDRAW,
        Permission.INTERVIEW_READ,
        Permission.INTERVIEW_RESPOND,
    },
    Role.RECRUITER: _STAFF_READ | {
        Permission.JOB_CREATE,
        Permission.JOB_SUBMIT,
        Permission.JOB_MANAGE,
        Permission.APPLICATION_UPDATE_STATUS,
        Permission.INTERVIEW_SCHEDULE,
        Permission.INTERVIEW_MANAGE,
    },
    Role.HIRING_MANAGER: _STAFF_READ | {
        Permission.JOB_CREATE,
        Permission.JOB_SUBMIT,
        Permission.JOB_MANAGE,
        Permission.APPLICATION_UPDATE_STATUS,
        Permission.INTERVIEW_SCHEDULE,
        Permission.INTERVIEW_MANAGE,
        Permission.INTERVIEW_DECIDE,
    },
    Role.HR: _STAFF_READ | {
        Permission.JOB_CREATE,
        Permission.JOB_SUBMIT,
        Permission.JOB_MANAGE,
        Permission.JOB_CANCEL,
        Permission.APPLICATION_UPDATE_STATUS,
        Permission.INTERVIEW_SCHEDULE,
        Permission.INTERVIEW_MANAGE,
        Permission.INTERVIEW_FEEDBACK_ANY,
        Permission.INTERVIEW_DECIDE,
    },
}

STAFF_ROLES = frozenset({Role.RECRUITER, Role.HIRING_MANAGER, Role.HR, Role.ADMIN})


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a command."""

    actor_id: int
    role: Role
    verified_staff: bool = False

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


def can_perform(role: Role, permission: Permission) -> bool:
    """Check whether a role holds a permission."""
    if role == Role.ADMIN:
        return True
    return permission in ROLE_PERMISSIONS.get(role, set())


def ensure_can(actor: Actor, permission: Permission) -> None:
    """
    Raise ``Forbidden`` unless the actor's role holds the permission.

    Args:
        actor: The caller
        permission: Required permission

    Raises:
        Forbidden: If the role lacks the permission
    """
    if can_perform(actor.role, permission):
        return
    logger.warning(
        f"Actor {actor.actor_id} with role {actor.role.value} lacks permission "
        f"{permission.value}"
    )
    raise Forbidden(
        f"Role {actor.role.value} is not allowed to perform {permission.value}",
        role=actor.role.value,
        permission=permission.value,
    )

