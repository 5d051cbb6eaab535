"""Company hiring policy consumed by the requisition lifecycle."""

from dataclasses import dataclass, field
from typing import Iterable

from core.config import Settings
from core.permissions import Role


@dataclass(frozen=True)
class CompanyPolicy:
    """Approval workflow settings for one deployment."""

    require_job_approval: bool = True
    approval_roles: frozenset[Role] = field(
        default_factory=lambda: frozenset({Role.HIRING_MANAGER, Role.HR, Role.ADMIN})
    )
    enable_application_withdrawal: bool = True

    @classmethod
    def build(
        cls,
        require_job_approval: bool = True,
        approval_roles: Iterable[str | Role] = ("hiring_manager", "hr", "admin"),
        enable_application_withdrawal: bool = True,
    ) -> "CompanyPolicy":
        return cls(
            require_job_approval=require_job_approval,
            approval_roles=frozenset(Role(r) for r in approval_roles),
            enable_application_withdrawal=enable_application_withdrawal,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompanyPolicy":
        """Build the policy from application settings."""
        return cls.build(
            require_job_approval=settings.require_job_approval,
            approval_roles=settings.job_approval_roles,
            enable_application_withdrawal=settings.enable_application_withdrawal,
        )
