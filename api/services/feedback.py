"""
Feedback aggregation and hiring decisions.

``decide`` is a two-phase command: the interview decision commits first, then
the decision is pushed into the application. If the second phase cannot be
applied the decision stays recorded and the caller gets a ``SyncFailure``
warning instead of an error.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.applications import record_status_change
from api.services.common import commit_or_conflict, load_or_404
from core.errors import (
    ConcurrentModification,
    Forbidden,
    IllegalTransition,
    SyncFailure,
    ValidationError,
)
from core.integrations.notifier import NotificationEvent, Notifier
from core.permissions import Actor, Permission, can_perform, ensure_can
from core.utils.datetime import now
from core.workflow.feedback import (
    FEEDBACK_CLOSED_STATUSES,
    Decision,
    Recommendation,
    check_feedback_allowed,
    is_feedback_complete,
    plan_decision_sync,
    validate_ratings,
)
from core.workflow.scheduling import InterviewStatus, check_transition
from database.models.applications import Application
from database.models.interviews import (
    Interview,
    InterviewDecisionAudit,
    InterviewFeedback,
)

logger = logging.getLogger(__name__)


@dataclass
class DecisionOutcome:
    """Result of ``decide``: the committed interview plus any sync warnings."""

    interview: Interview
    application: Application
    warnings: list[Dict[str, Any]] = field(default_factory=list)

    @property
    def synced(self) -> bool:
        return not self.warnings


def _resolve_interviewer(
    actor: Actor, interview: Interview, interviewer_id: Optional[int]
) -> int:
    panel = set(interview.interviewer_ids)
    can_override = can_perform(actor.role, Permission.INTERVIEW_FEEDBACK_ANY)
    target = interviewer_id if interviewer_id is not None else actor.actor_id

    if target != actor.actor_id:
        if not can_override:
            raise Forbidden(
                "Only HR or admins can submit feedback for another interviewer",
                interview_id=interview.id,
            )
        if target not in panel:
            raise ValidationError(
                f"Interviewer {target} is not on this interview's panel",
                field="interviewer_id",
            )
        return target

    if actor.actor_id not in panel:
        if not can_override:
            raise Forbidden(
                "Only assigned interviewers can submit feedback",
                interview_id=interview.id,
            )
        raise ValidationError(
            "interviewer_id is required when submitting for a panel member",
            field="interviewer_id",
        )
    return target


async def submit_feedback(
    session: AsyncSession,
    actor: Actor,
    interview_id: int,
    recommendation: Recommendation,
    ratings: Optional[Mapping[str, Optional[int]]] = None,
    strengths: Optional[str] = None,
    areas_of_improvement: Optional[str] = None,
    notes: Optional[str] = None,
    private_notes: Optional[str] = None,
    interviewer_id: Optional[int] = None,
    notifier: Optional[Notifier] = None,
) -> Interview:
    """
    Create or replace one interviewer's feedback.

    Once every interviewer on the panel has submitted, the interview moves to
    ``completed``.

    Args:
        session: Database session
        actor: Interviewer, or HR/admin submitting on someone's behalf
        interview_id: Interview being reviewed
        recommendation: Hire recommendation
        ratings: Scores from 1 to 5 keyed by rating name
        strengths: Observed strengths
        areas_of_improvement: Observed gaps
        notes: Notes shared with the hiring team
        private_notes: Notes visible to HR only
        interviewer_id: Whose feedback this is, defaults to the actor
        notifier: Optional notifier

    Returns:
        The updated interview

    Raises:
        Forbidden: If the actor is not on the panel and lacks the override permission
        IllegalTransition: If the interview was cancelled or was a no-show
        ValidationError: If a rating is out of range
    """
    interview = await load_or_404(session, Interview, interview_id, "Interview")
    target_interviewer = _resolve_interviewer(actor, interview, interviewer_id)
    check_feedback_allowed(interview.status)
    cleaned_ratings = validate_ratings(ratings or {})

    stamp = now()
    entry = next(
        (f for f in interview.feedback if f.interviewer_id == target_interviewer), None
    )
    if entry is None:
        entry = InterviewFeedback(interviewer_id=target_interviewer)
        interview.feedback.append(entry)
    entry.submitted_by = actor.actor_id
    entry.ratings = cleaned_ratings
    entry.recommendation = recommendation
    entry.strengths = strengths
    entry.areas_of_improvement = areas_of_improvement
    entry.notes = notes
    entry.private_notes = private_notes
    entry.submitted_at = stamp

    previous = interview.status
    submitters = {f.interviewer_id for f in interview.feedback}
    if (
        previous != InterviewStatus.COMPLETED
        and is_feedback_complete(interview.interviewer_ids, submitters)
    ):
        interview.status = check_transition(previous, InterviewStatus.COMPLETED)
    interview.updated_at = stamp

    try:
        await commit_or_conflict(session, "Interview")
    except IntegrityError:
        # Another request inserted this interviewer's row first.
        await session.rollback()
        raise ConcurrentModification(
            "Feedback was submitted concurrently, reload and retry",
            interview_id=interview_id,
        )

    logger.info(
        f"Feedback for interview {interview.id} from interviewer {target_interviewer} "
        f"recorded by actor {actor.actor_id}"
    )
    if interview.status != previous:
        logger.info(
            f"Interview {interview.id} status: {previous.value} -> {interview.status.value}"
        )
    if notifier:
        notifier.notify(
            NotificationEvent.FEEDBACK_SUBMITTED,
            {
                "interview_id": interview.id,
                "interviewer_id": target_interviewer,
                "recommendation": recommendation.value,
                "status": interview.status.value,
            },
        )
    return interview


async def _sync_application(
    session: AsyncSession, actor: Actor, interview: Interview, decision: Decision
) -> tuple[Application, Optional[SyncFailure]]:
    application = await load_or_404(
        session, Application, interview.application_id, "Application"
    )
    plan = plan_decision_sync(application.status, decision)
    if plan.failure is not None:
        return application, plan.failure
    if plan.is_noop:
        logger.info(
            f"Application {application.id} already {application.status.value}, "
            f"decision {decision.value} needs no sync"
        )
        return application, None

    record_status_change(
        application,
        plan.target,
        actor.actor_id,
        f"Interview {interview.id} decision: {decision.value}",
    )
    try:
        await commit_or_conflict(session, "Application")
    except ConcurrentModification as e:
        # The rollback expired everything loaded in this session.
        await session.refresh(interview)
        application = await load_or_404(
            session, Application, interview.application_id, "Application"
        )
        return application, SyncFailure(
            f"Decision {decision.value} recorded but application update failed: "
            f"{e.message}",
            decision=decision.value,
            application_status=plan.current.value,
            target_status=plan.target.value,
            reason=e.kind.value,
        )

    logger.info(
        f"Application {application.id} status: {plan.current.value} -> "
        f"{plan.target.value} by actor {actor.actor_id}"
    )
    return application, None


async def decide(
    session: AsyncSession,
    actor: Actor,
    interview_id: int,
    decision: Decision,
    notes: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> DecisionOutcome:
    """
    Record a hiring decision and push it into the application.

    Args:
        session: Database session
        actor: Hiring manager, HR or admin
        interview_id: Interview the decision is made on
        decision: advance, offer, reject or hold
        notes: Decision notes
        notifier: Optional notifier

    Returns:
        ``DecisionOutcome`` with a ``sync_failure`` warning when the
        application could not follow the decision

    Raises:
        Forbidden: If the actor cannot make hiring decisions
        IllegalTransition: If no feedback exists or the interview never took place
    """
    ensure_can(actor, Permission.INTERVIEW_DECIDE)
    interview = await load_or_404(session, Interview, interview_id, "Interview")

    if interview.status in FEEDBACK_CLOSED_STATUSES:
        raise IllegalTransition(
            f"Cannot decide on an interview in status {interview.status.value}",
            current=interview.status.value,
            requested="decide",
        )
    if not interview.feedback:
        raise IllegalTransition(
            "A decision requires at least one feedback entry",
            current=interview.status.value,
            requested="decide",
        )

    # Phase 1: the interview decision.
    stamp = now()
    previous_decision = interview.decision
    interview.decision_audit.append(
        InterviewDecisionAudit(
            previous_decision=previous_decision,
            new_decision=decision,
            actor_id=actor.actor_id,
            notes=notes,
            decided_at=stamp,
        )
    )
    interview.decision = decision
    interview.decided_by = actor.actor_id
    interview.decided_at = stamp
    interview.decision_notes = notes
    interview.updated_at = stamp
    await commit_or_conflict(session, "Interview")

    if previous_decision is not None and previous_decision != decision:
        logger.info(
            f"Interview {interview.id} decision changed: {previous_decision.value} -> "
            f"{decision.value} by actor {actor.actor_id}"
        )
    else:
        logger.info(
            f"Interview {interview.id} decision {decision.value} by actor {actor.actor_id}"
        )

    # Phase 2: propagate to the application.
    application, failure = await _sync_application(session, actor, interview, decision)
    warnings = []
    if failure is not None:
        logger.warning(f"Decision sync failed for interview {interview.id}: {failure.message}")
        warnings.append(failure.to_dict())

    if notifier:
        notifier.notify(
            NotificationEvent.DECISION_MADE,
            {
                "interview_id": interview.id,
                "application_id": application.id,
                "decision": decision.value,
                "application_status": application.status.value,
                "synced": failure is None,
            },
        )
    return DecisionOutcome(interview=interview, application=application, warnings=warnings)
