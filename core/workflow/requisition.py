"""
Requisition lifecycle state machine.

Pure functions over ``(current status, action, actor role, policy)``. The
service layer loads a Job, asks ``transition`` for the next status, stamps
metadata and commits. Nothing here touches applications or interviews.
"""

from enum import Enum
from typing import Mapping, Optional

from core.errors import Forbidden, IllegalTransition, ValidationError
from core.permissions import Permission, Role, can_perform
from core.policy import CompanyPolicy


class JobStatus(str, Enum):
    """Requisition status."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    OPEN = "open"
    PAUSED = "paused"
    CLOSED = "closed"
    FILLED = "filled"
    CANCELLED = "cancelled"


class JobVisibility(str, Enum):
    """Who may apply to a requisition."""

    PUBLIC = "public"
    INTERNAL = "internal"


class JobAction(str, Enum):
    """Commands accepted by the requisition lifecycle."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    OPEN = "open"
    PAUSE = "pause"
    CLOSE = "close"
    FILL = "fill"
    CANCEL = "cancel"


TERMINAL_STATUSES = frozenset({JobStatus.CLOSED, JobStatus.FILLED, JobStatus.CANCELLED})

_ADJACENCY: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.DRAFT: frozenset(
        {JobStatus.PENDING_APPROVAL, JobStatus.OPEN, JobStatus.CANCELLED}
    ),
    JobStatus.PENDING_APPROVAL: frozenset({JobStatus.OPEN, JobStatus.CANCELLED}),
    JobStatus.OPEN: frozenset(
        {JobStatus.PAUSED, JobStatus.CLOSED, JobStatus.FILLED, JobStatus.CANCELLED}
    ),
    JobStatus.PAUSED: frozenset({JobStatus.OPEN, JobStatus.CANCELLED}),
    JobStatus.CLOSED: frozenset(),
    JobStatus.FILLED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}

# Actions gated by the permission table. Approve/reject are gated by the
# company policy's approval roles instead.
_ACTION_PERMISSIONS: dict[JobAction, Permission] = {
    JobAction.SUBMIT: Permission.JOB_SUBMIT,
    JobAction.OPEN: Permission.JOB_MANAGE,
    JobAction.PAUSE: Permission.JOB_MANAGE,
    JobAction.CLOSE: Permission.JOB_MANAGE,
    JobAction.FILL: Permission.JOB_MANAGE,
    JobAction.CANCEL: Permission.JOB_CANCEL,
}

SUBMISSION_REQUIRED_FIELDS = ("description", "location", "department")


def allowed_next(current: JobStatus) -> frozenset[JobStatus]:
    """Statuses reachable from ``current`` in one step, ignoring policy."""
    return _ADJACENCY[current]


def is_terminal(status: JobStatus) -> bool:
    return status in TERMINAL_STATUSES


def _target_for(
    current: JobStatus, action: JobAction, policy: CompanyPolicy
) -> Optional[JobStatus]:
    if action == JobAction.SUBMIT:
        if current != JobStatus.DRAFT:
            return None
        return JobStatus.PENDING_APPROVAL if policy.require_job_approval else JobStatus.OPEN

    if action in (JobAction.APPROVE, JobAction.REJECT):
        if current != JobStatus.PENDING_APPROVAL:
            return None
        return JobStatus.OPEN if action == JobAction.APPROVE else JobStatus.CANCELLED

    if action == JobAction.OPEN:
        if current == JobStatus.PAUSED:
            return JobStatus.OPEN
        if current == JobStatus.DRAFT and not policy.require_job_approval:
            return JobStatus.OPEN
        return None

    if action in (JobAction.PAUSE, JobAction.CLOSE, JobAction.FILL):
        if current != JobStatus.OPEN:
            return None
        return {
            JobAction.PAUSE: JobStatus.PAUSED,
            JobAction.CLOSE: JobStatus.CLOSED,
            JobAction.FILL: JobStatus.FILLED,
        }[action]

    if action == JobAction.CANCEL:
        return None if is_terminal(current) else JobStatus.CANCELLED

    return None


def transition(
    current: JobStatus,
    action: JobAction,
    role: Role,
    policy: CompanyPolicy,
) -> JobStatus:
    """
    Compute the status a job moves to when ``action`` is applied.

    Args:
        current: Current job status
        action: Requested action
        role: Role of the acting user
        policy: Company approval policy

    Returns:
        The new job status

    Raises:
        Forbidden: If the role may not perform the action
        IllegalTransition: If the action is not legal from ``current``
    """
    if action in (JobAction.APPROVE, JobAction.REJECT):
        if role not in policy.approval_roles:
            raise Forbidden(
                f"Role {role.value} cannot {action.value} job postings",
                role=role.value,
                allowed_roles=sorted(r.value for r in policy.approval_roles),
            )
    elif not can_perform(role, _ACTION_PERMISSIONS[action]):
        raise Forbidden(
            f"Role {role.value} cannot {action.value} job postings",
            role=role.value,
            permission=_ACTION_PERMISSIONS[action].value,
        )

    target = _target_for(current, action, policy)
    if target is None or target not in allowed_next(current):
        raise IllegalTransition(
            f"Cannot {action.value} a job in status {current.value}",
            current=current.value,
            requested=action.value,
        )
    return target


def validate_submission(fields: Mapping[str, Optional[str]]) -> None:
    """Require the fields a job must carry before it leaves draft."""
    for name in SUBMISSION_REQUIRED_FIELDS:
        value = fields.get(name)
        if value is None or not str(value).strip():
            raise ValidationError(
                f"Job {name} is required before submission", field=name
            )


def validate_rejection_reason(reason: Optional[str]) -> str:
    if reason is None or not reason.strip():
        raise ValidationError("A rejection reason is required", field="reason")
    return reason.strip()
