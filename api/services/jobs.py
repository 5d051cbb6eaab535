"""
Job requisition service functions.

Each command loads the job, asks ``core.workflow.requisition`` for the next
status, stamps the matching metadata and commits.
"""

from typing import Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from api.services.common import commit_or_conflict, load_or_404
from core.errors import NotFound, ValidationError
from core.integrations.notifier import NotificationEvent, Notifier
from core.permissions import Actor, Permission, ensure_can
from core.policy import CompanyPolicy
from core.utils.datetime import now
from core.workflow.requisition import (
    JobAction,
    JobStatus,
    JobVisibility,
    transition,
    validate_rejection_reason,
    validate_submission,
)
from database.models.jobs import Job

logger = logging.getLogger(__name__)

_ACTION_EVENTS = {
    JobAction.SUBMIT: NotificationEvent.JOB_SUBMITTED,
    JobAction.APPROVE: NotificationEvent.JOB_APPROVED,
    JobAction.REJECT: NotificationEvent.JOB_REJECTED,
}


async def create_job(
    session: AsyncSession,
    actor: Actor,
    title: str,
    description: Optional[str] = None,
    location: Optional[str] = None,
    department: Optional[str] = None,
    hiring_manager_id: Optional[int] = None,
    positions: int = 1,
    visibility: JobVisibility = JobVisibility.PUBLIC,
) -> Job:
    """
    Create a job requisition in draft.

    Args:
        session: Database session
        actor: Caller
        title: Job title
        description: Job description, required before submission
        location: Job location, required before submission
        department: Department, required before submission
        hiring_manager_id: Owning hiring manager
        positions: Number of openings
        visibility: Public or internal-only

    Returns:
        The new job
    """
    ensure_can(actor, Permission.JOB_CREATE)
    if not title or not title.strip():
        raise ValidationError("Job title is required", field="title")
    if positions < 1:
        raise ValidationError("Positions must be at least 1", field="positions")

    job = Job(
        title=title.strip(),
        description=description,
        location=location,
        department=department,
        hiring_manager_id=hiring_manager_id,
        positions=positions,
        visibility=visibility,
        status=JobStatus.DRAFT,
        created_by=actor.actor_id,
    )
    session.add(job)
    await commit_or_conflict(session, "Job")

    logger.info(f"Job {job.id} created in draft by actor {actor.actor_id}")
    return job


async def get_job(session: AsyncSession, actor: Actor, job_id: int) -> Job:
    """Get a job. Candidates only see open public jobs."""
    ensure_can(actor, Permission.JOB_READ)
    job = await load_or_404(session, Job, job_id, "Job")
    if not actor.is_staff:
        visible = job.status == JobStatus.OPEN and (
            job.visibility == JobVisibility.PUBLIC or actor.verified_staff
        )
        if not visible:
            raise NotFound("Job", job_id)
    return job


def _stamp(
    job: Job, previous: JobStatus, action: JobAction, target: JobStatus, actor: Actor
) -> None:
    stamp = now()
    if previous == JobStatus.DRAFT and target != JobStatus.CANCELLED:
        job.submitted_by = actor.actor_id
        job.submitted_at = stamp
    elif action == JobAction.APPROVE:
        job.approved_by = actor.actor_id
        job.approved_at = stamp

    if target == JobStatus.OPEN:
        job.opened_at = stamp
    elif target == JobStatus.PAUSED:
        job.paused_at = stamp
    elif target == JobStatus.CLOSED:
        job.closed_at = stamp
    elif target == JobStatus.FILLED:
        job.filled_at = stamp
    elif target == JobStatus.CANCELLED:
        job.cancelled_at = stamp
    job.updated_at = stamp


async def apply_job_action(
    session: AsyncSession,
    actor: Actor,
    job_id: int,
    action: JobAction,
    policy: CompanyPolicy,
    reason: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Job:
    """
    Apply one lifecycle action to a job.

    Args:
        session: Database session
        actor: Caller
        job_id: Job to transition
        action: Lifecycle action
        policy: Company approval policy
        reason: Rejection reason, required for ``reject``
        notifier: Optional notifier for the committed transition

    Returns:
        The updated job

    Raises:
        NotFound: If the job does not exist
        Forbidden: If the actor may not perform the action
        IllegalTransition: If the action is not legal from the current status
        ValidationError: If submission fields or the rejection reason are missing
    """
    job = await load_or_404(session, Job, job_id, "Job")
    previous = job.status
    target = transition(previous, action, actor.role, policy)

    leaves_draft = previous == JobStatus.DRAFT and target != JobStatus.CANCELLED
    if leaves_draft:
        validate_submission(
            {
                "description": job.description,
                "location": job.location,
                "department": job.department,
            }
        )
    if action == JobAction.REJECT:
        job.rejection_reason = validate_rejection_reason(reason)
        job.rejected_by = actor.actor_id
        job.rejected_at = now()

    job.status = target
    _stamp(job, previous, action, target, actor)
    await commit_or_conflict(session, "Job")

    logger.info(
        f"Job {job.id} {action.value}: {previous.value} -> {target.value} "
        f"by actor {actor.actor_id}"
    )
    if notifier:
        notifier.notify(
            _ACTION_EVENTS.get(action, NotificationEvent.JOB_STATUS_CHANGED),
            {
                "job_id": job.id,
                "action": action.value,
                "previous_status": previous.value,
                "status": target.value,
                "actor_id": actor.actor_id,
            },
        )
    return job
