"""
Application service functions.

Owns ``Application.status`` and its history log. Every status change goes
through ``record_status_change`` so history stays append-only with strictly
increasing timestamps.
"""

from typing import Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from api.services.common import commit_or_conflict, load_or_404
from core.errors import (
    DuplicateApplication,
    Forbidden,
    IllegalTransition,
    JobNotAcceptingApplications,
)
from core.integrations.notifier import NotificationEvent, Notifier
from core.integrations.scoring import ScoringOracle
from core.permissions import Actor, Permission, ensure_can
from core.policy import CompanyPolicy
from core.utils.datetime import now
from core.workflow.application_status import (
    ApplicationStatus,
    check_override_note,
    check_transition,
    check_withdraw,
    next_history_timestamp,
)
from core.workflow.requisition import JobStatus, JobVisibility
from database.models.applications import Application, ApplicationStatusHistory
from database.models.jobs import Job

logger = logging.getLogger(__name__)


def record_status_change(
    application: Application,
    status: ApplicationStatus,
    actor_id: int,
    note: Optional[str] = None,
) -> ApplicationStatusHistory:
    """
    Set the application's status and append the matching history entry.

    Callers are responsible for legality checks and for committing.
    """
    stamp = next_history_timestamp(now(), application.last_history_at)
    entry = ApplicationStatusHistory(
        status=status,
        actor_id=actor_id,
        note=note,
        changed_at=stamp,
    )
    application.status_history.append(entry)
    application.status = status
    application.updated_at = stamp
    if status == ApplicationStatus.REJECTED:
        application.rejected_at = stamp
        application.rejected_by = actor_id
    return entry


def _ensure_can_view(actor: Actor, application: Application) -> None:
    ensure_can(actor, Permission.APPLICATION_READ)
    if not actor.is_staff and application.candidate_id != actor.actor_id:
        raise Forbidden(
            "Candidates can only view their own applications",
            application_id=application.id,
        )


async def _score(
    session: AsyncSession,
    application: Application,
    job: Job,
    resume_text: str,
    oracle: ScoringOracle,
) -> None:
    committed = (application.scoring_status, application.match_score, application.match_summary)
    status, result = await oracle.evaluate(resume_text, job.title, job.description or "")
    application.scoring_status = status
    if result is not None:
        application.match_score = result.match_score
        application.match_summary = result.summary
    try:
        await session.commit()
    except StaleDataError as e:
        await session.rollback()
        await session.refresh(application)
        logger.warning(f"Discarded score for application {application.id}: {e}")
        return
    except SQLAlchemyError as e:
        # Detach first so the rollback does not expire the committed rows.
        session.expunge_all()
        await session.rollback()
        (
            application.scoring_status,
            application.match_score,
            application.match_summary,
        ) = committed
        logger.error(f"Failed to store score for application {application.id}: {e}")
        return
    logger.info(f"Application {application.id} scoring finished: {status.value}")


async def apply_to_job(
    session: AsyncSession,
    actor: Actor,
    job_id: int,
    cover_letter: Optional[str] = None,
    resume_url: Optional[str] = None,
    resume_text: Optional[str] = None,
    notifier: Optional[Notifier] = None,
    scoring_oracle: Optional[ScoringOracle] = None,
) -> Application:
    """
    Submit an application for the calling candidate.

    Args:
        session: Database session
        actor: Applying candidate
        job_id: Target job
        cover_letter: Optional cover letter
        resume_url: Optional resume location
        resume_text: Resume text sent to the scoring oracle
        notifier: Optional notifier
        scoring_oracle: Optional scoring oracle, called after the application commits

    Returns:
        The new application with one ``pending`` history entry

    Raises:
        NotFound: If the job does not exist
        JobNotAcceptingApplications: If the job is not open to this applicant
        DuplicateApplication: If the candidate already applied
    """
    ensure_can(actor, Permission.APPLICATION_APPLY)
    job = await load_or_404(session, Job, job_id, "Job")

    if job.status != JobStatus.OPEN:
        raise JobNotAcceptingApplications(
            "Job is not accepting applications",
            current=job.status.value,
            requested="apply",
        )
    if job.visibility == JobVisibility.INTERNAL and not actor.verified_staff:
        raise JobNotAcceptingApplications(
            "This job is open to internal applicants only",
            current=job.status.value,
            requested="apply",
            visibility=job.visibility.value,
        )

    existing = await session.execute(
        select(Application.id).where(
            Application.candidate_id == actor.actor_id,
            Application.job_id == job_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicateApplication(actor.actor_id, job_id)

    application = Application(
        candidate_id=actor.actor_id,
        job_id=job_id,
        cover_letter=cover_letter,
        resume_url=resume_url,
        status=ApplicationStatus.PENDING,
    )
    record_status_change(
        application, ApplicationStatus.PENDING, actor.actor_id, "Application submitted"
    )
    session.add(application)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise DuplicateApplication(actor.actor_id, job_id)

    logger.info(
        f"Application {application.id} created for job {job_id} "
        f"by candidate {actor.actor_id}"
    )
    if notifier:
        notifier.notify(
            NotificationEvent.APPLICATION_RECEIVED,
            {
                "application_id": application.id,
                "job_id": job_id,
                "candidate_id": actor.actor_id,
            },
        )

    if scoring_oracle is not None and resume_text:
        await _score(session, application, job, resume_text, scoring_oracle)
    return application


async def get_application(
    session: AsyncSession, actor: Actor, application_id: int
) -> Application:
    application = await load_or_404(session, Application, application_id, "Application")
    _ensure_can_view(actor, application)
    return application


async def get_application_history(
    session: AsyncSession, actor: Actor, application_id: int
) -> list[ApplicationStatusHistory]:
    """Get the ordered status history of an application."""
    application = await get_application(session, actor, application_id)
    return list(application.status_history)


async def update_application_status(
    session: AsyncSession,
    actor: Actor,
    application_id: int,
    new_status: ApplicationStatus,
    note: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Application:
    """
    Move an application along the adjacency table.

    Raises:
        IllegalTransition: If the edge is not allowed. Withdrawal is only
            reachable through ``withdraw_application``.
    """
    ensure_can(actor, Permission.APPLICATION_UPDATE_STATUS)
    application = await load_or_404(session, Application, application_id, "Application")
    previous = application.status

    if new_status == ApplicationStatus.WITHDRAWN:
        raise IllegalTransition(
            "Applications can only be withdrawn by the candidate",
            current=previous.value,
            requested=new_status.value,
        )
    check_transition(previous, new_status)

    record_status_change(application, new_status, actor.actor_id, note)
    await commit_or_conflict(session, "Application")

    logger.info(
        f"Application {application.id} status: {previous.value} -> {new_status.value} "
        f"by actor {actor.actor_id}"
    )
    if notifier:
        notifier.notify(
            NotificationEvent.APPLICATION_STATUS_CHANGED,
            {
                "application_id": application.id,
                "previous_status": previous.value,
                "status": new_status.value,
                "actor_id": actor.actor_id,
            },
        )
    return application


async def withdraw_application(
    session: AsyncSession,
    actor: Actor,
    application_id: int,
    policy: CompanyPolicy,
    reason: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Application:
    """
    Withdraw an application on behalf of its candidate.

    Raises:
        Forbidden: If withdrawal is disabled or the actor does not own the application
        IllegalTransition: If the application is already in a terminal status
    """
    ensure_can(actor, Permission.APPLICATION_WITHDRAW)
    if not policy.enable_application_withdrawal:
        raise Forbidden("Application withdrawal is disabled")

    application = await load_or_404(session, Application, application_id, "Application")
    if application.candidate_id != actor.actor_id:
        raise Forbidden(
            "Only the candidate can withdraw this application",
            application_id=application_id,
        )
    previous = application.status
    target = check_withdraw(previous)

    entry = record_status_change(
        application, target, actor.actor_id, reason or "Withdrawn by candidate"
    )
    application.withdrawn_at = entry.changed_at
    application.withdrawn_reason = reason
    await commit_or_conflict(session, "Application")

    logger.info(f"Application {application.id} withdrawn from {previous.value}")
    if notifier:
        notifier.notify(
            NotificationEvent.APPLICATION_WITHDRAWN,
            {
                "application_id": application.id,
                "job_id": application.job_id,
                "previous_status": previous.value,
            },
        )
    return application


async def override_application_status(
    session: AsyncSession,
    actor: Actor,
    application_id: int,
    new_status: ApplicationStatus,
    note: Optional[str],
    notifier: Optional[Notifier] = None,
) -> Application:
    """
    Administrative status change that ignores the adjacency table.

    This is the only way out of an absorbing status. The history entry is
    marked ``[override]``.
    """
    ensure_can(actor, Permission.APPLICATION_OVERRIDE)
    marked_note = check_override_note(note)
    application = await load_or_404(session, Application, application_id, "Application")
    previous = application.status

    record_status_change(application, new_status, actor.actor_id, marked_note)
    await commit_or_conflict(session, "Application")

    logger.warning(
        f"Application {application.id} status overridden: {previous.value} -> "
        f"{new_status.value} by actor {actor.actor_id}"
    )
    if notifier:
        notifier.notify(
            NotificationEvent.APPLICATION_STATUS_CHANGED,
            {
                "application_id": application.id,
                "previous_status": previous.value,
                "status": new_status.value,
                "actor_id": actor.actor_id,
                "override": True,
            },
        )
    return application
