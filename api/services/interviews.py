"""
Interview scheduling service functions.

``schedule_interview`` and ``reschedule_interview`` run their conflict check
and commit while holding per-interviewer locks, so two requests can never both
see a free calendar and both book it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.applications import record_status_change
from api.services.common import commit_or_conflict, load_or_404
from core.errors import (
    Forbidden,
    IllegalTransition,
    SchedulingConflict,
    ValidationError,
)
from core.integrations.notifier import NotificationEvent, Notifier
from core.locks import lock_keys
from core.permissions import Actor, Permission, ensure_can
from core.utils.datetime import ensure_utc, now
from core.workflow.application_status import (
    interview_nudge_target,
    is_terminal as application_is_terminal,
)
from core.workflow.scheduling import (
    BLOCKING_STATUSES,
    MANUAL_STATUSES,
    Booking,
    CandidateResponse,
    InterviewStatus,
    InterviewType,
    Interval,
    PanelRole,
    check_transition,
    find_conflict,
    response_to_status,
    validate_duration,
    validate_panel,
)
from database.models.applications import Application
from database.models.interviews import (
    Interview,
    InterviewParticipant,
    InterviewReschedule,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PanelMember:
    interviewer_id: int
    role_in_panel: PanelRole = PanelRole.INTERVIEWER


async def find_conflicting_interview(
    session: AsyncSession,
    interviewer_ids: Sequence[int],
    interval: Interval,
    exclude_interview_id: Optional[int] = None,
) -> Optional[tuple[int, int]]:
    """
    Look up blocking interviews that overlap ``interval`` for any interviewer.

    Returns:
        ``(interviewer_id, conflicting_interview_id)`` or ``None``
    """
    busy_ids = select(InterviewParticipant.interview_id).where(
        InterviewParticipant.interviewer_id.in_(list(interviewer_ids))
    )
    result = await session.execute(
        select(Interview)
        .where(
            Interview.id.in_(busy_ids),
            Interview.status.in_(list(BLOCKING_STATUSES)),
            Interview.scheduled_at < interval.end,
            Interview.ends_at > interval.start,
        )
        .execution_options(populate_existing=True)
    )
    bookings = [
        Booking(
            interview_id=interview.id,
            interviewer_ids=frozenset(interview.interviewer_ids),
            interval=Interval(interview.scheduled_at, interview.duration_minutes),
            status=interview.status,
        )
        for interview in result.scalars().all()
    ]
    return find_conflict(interval, interviewer_ids, bookings, exclude_interview_id)


def _ensure_can_view(actor: Actor, interview: Interview) -> None:
    ensure_can(actor, Permission.INTERVIEW_READ)
    if not actor.is_staff and interview.candidate_id != actor.actor_id:
        raise Forbidden(
            "Candidates can only view their own interviews", interview_id=interview.id
        )


def _notify(
    notifier: Optional[Notifier],
    event: NotificationEvent,
    interview: Interview,
    **extra,
) -> None:
    if not notifier:
        return
    notifier.notify(
        event,
        {
            "interview_id": interview.id,
            "application_id": interview.application_id,
            "candidate_id": interview.candidate_id,
            "interviewer_ids": interview.interviewer_ids,
            "status": interview.status.value,
            "scheduled_at": interview.scheduled_at.isoformat(),
            **extra,
        },
    )


async def schedule_interview(
    session: AsyncSession,
    actor: Actor,
    locks,
    application_id: int,
    panel: Sequence[PanelMember],
    scheduled_at: datetime,
    duration_minutes: int = 60,
    round_number: int = 1,
    interview_type: InterviewType = InterviewType.TECHNICAL,
    title: Optional[str] = None,
    location: Optional[str] = None,
    timezone: str = "UTC",
    notifier: Optional[Notifier] = None,
) -> Interview:
    """
    Schedule an interview round for an application.

    Args:
        session: Database session
        actor: Scheduling staff member
        locks: Interviewer lock manager
        application_id: Application being interviewed
        panel: Interviewers with their panel roles
        scheduled_at: Start time
        duration_minutes: Length of the interview
        round_number: Interview round, starting at 1
        interview_type: Kind of interview
        title: Optional display title
        location: Room or meeting link
        timezone: Display timezone
        notifier: Optional notifier

    Returns:
        The new interview

    Raises:
        ValidationError: If the panel, round or duration is malformed
        NotFound: If the application does not exist
        IllegalTransition: If the application is in a terminal status
        SchedulingConflict: If any interviewer is already booked
    """
    ensure_can(actor, Permission.INTERVIEW_SCHEDULE)
    interviewer_ids = [member.interviewer_id for member in panel]
    validate_panel(interviewer_ids, round_number, duration_minutes)
    interval = Interval(ensure_utc(scheduled_at), duration_minutes)

    application = await load_or_404(session, Application, application_id, "Application")
    if application_is_terminal(application.status):
        raise IllegalTransition(
            f"Cannot schedule an interview for an application in status "
            f"{application.status.value}",
            current=application.status.value,
            requested="schedule_interview",
        )

    async with locks.hold(lock_keys(interviewer_ids, interval, locks.bucket_minutes)):
        conflict = await find_conflicting_interview(session, interviewer_ids, interval)
        if conflict:
            interviewer_id, conflicting_id = conflict
            logger.warning(
                f"Scheduling conflict for interviewer {interviewer_id} "
                f"with interview {conflicting_id}"
            )
            raise SchedulingConflict(interviewer_id, conflicting_id)

        interview = Interview(
            application_id=application.id,
            job_id=application.job_id,
            candidate_id=application.candidate_id,
            round=round_number,
            interview_type=interview_type,
            title=title,
            location=location,
            timezone=timezone,
            status=InterviewStatus.SCHEDULED,
            scheduled_at=interval.start,
            duration_minutes=duration_minutes,
            ends_at=interval.end,
            created_by=actor.actor_id,
        )
        for member in panel:
            interview.participants.append(
                InterviewParticipant(
                    interviewer_id=member.interviewer_id,
                    role_in_panel=member.role_in_panel,
                )
            )
        session.add(interview)

        previous_status = application.status
        nudge = interview_nudge_target(previous_status)
        if nudge is not None:
            record_status_change(application, nudge, actor.actor_id, "Interview scheduled")

        await commit_or_conflict(session, "Interview")

    # Reload so every collection is populated before the caller serializes it.
    interview = await load_or_404(session, Interview, interview.id, "Interview")
    logger.info(
        f"Interview {interview.id} scheduled for application {application.id} "
        f"round {round_number} at {interval.start.isoformat()} by actor {actor.actor_id}"
    )
    if nudge is not None:
        logger.info(
            f"Application {application.id} status: {previous_status.value} -> "
            f"{nudge.value} by actor {actor.actor_id}"
        )
    _notify(notifier, NotificationEvent.INTERVIEW_SCHEDULED, interview)
    return interview


async def reschedule_interview(
    session: AsyncSession,
    actor: Actor,
    locks,
    interview_id: int,
    new_time: datetime,
    reason: Optional[str] = None,
    duration_minutes: Optional[int] = None,
    notifier: Optional[Notifier] = None,
) -> Interview:
    """
    Move an interview to a new time.

    The previous time is appended to the reschedule log and the candidate is
    asked to respond again.

    Raises:
        IllegalTransition: If the interview is finished or in progress
        SchedulingConflict: If the new time double-books an interviewer
    """
    ensure_can(actor, Permission.INTERVIEW_MANAGE)
    interview = await load_or_404(session, Interview, interview_id, "Interview")
    check_transition(interview.status, InterviewStatus.RESCHEDULED)

    duration = duration_minutes if duration_minutes is not None else interview.duration_minutes
    validate_duration(duration)
    interval = Interval(ensure_utc(new_time), duration)
    interviewer_ids = interview.interviewer_ids

    async with locks.hold(lock_keys(interviewer_ids, interval, locks.bucket_minutes)):
        conflict = await find_conflicting_interview(
            session, interviewer_ids, interval, exclude_interview_id=interview.id
        )
        if conflict:
            interviewer_id, conflicting_id = conflict
            logger.warning(
                f"Reschedule of interview {interview.id} conflicts for interviewer "
                f"{interviewer_id} with interview {conflicting_id}"
            )
            raise SchedulingConflict(interviewer_id, conflicting_id)

        previous_time = interview.scheduled_at
        interview.reschedule_history.append(
            InterviewReschedule(
                previous_time=previous_time,
                new_time=interval.start,
                reason=reason,
                requested_by=actor.actor_id,
            )
        )
        interview.scheduled_at = interval.start
        interview.duration_minutes = duration
        interview.ends_at = interval.end
        interview.status = InterviewStatus.RESCHEDULED
        interview.candidate_response = CandidateResponse.PENDING
        interview.responded_at = None
        interview.updated_at = now()
        await commit_or_conflict(session, "Interview")

    logger.info(
        f"Interview {interview.id} rescheduled from {previous_time.isoformat()} to "
        f"{interval.start.isoformat()} by actor {actor.actor_id}"
    )
    _notify(
        notifier,
        NotificationEvent.INTERVIEW_RESCHEDULED,
        interview,
        previous_time=previous_time.isoformat(),
        reason=reason,
    )
    return interview


async def respond_to_interview(
    session: AsyncSession,
    actor: Actor,
    interview_id: int,
    response: str,
    note: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Interview:
    """
    Record the candidate's answer to an invitation.

    ``accepted`` confirms the interview, ``declined`` cancels it.

    Raises:
        Forbidden: If the actor is not the interview's candidate
        InvalidResponse: If the response is not ``accepted`` or ``declined``
    """
    ensure_can(actor, Permission.INTERVIEW_RESPOND)
    interview = await load_or_404(session, Interview, interview_id, "Interview")
    if interview.candidate_id != actor.actor_id:
        raise Forbidden(
            "Only the interview's candidate can respond", interview_id=interview_id
        )

    previous = interview.status
    parsed, target = response_to_status(previous, response)
    stamp = now()
    interview.candidate_response = parsed
    interview.responded_at = stamp
    interview.response_note = note
    interview.status = target
    if target == InterviewStatus.CANCELLED:
        interview.cancelled_at = stamp
        interview.cancelled_by = actor.actor_id
        interview.cancellation_reason = note or "Declined by candidate"
    interview.updated_at = stamp
    await commit_or_conflict(session, "Interview")

    logger.info(
        f"Interview {interview.id} {parsed.value} by candidate {actor.actor_id}: "
        f"{previous.value} -> {target.value}"
    )
    _notify(
        notifier, NotificationEvent.INTERVIEW_RESPONDED, interview, response=parsed.value
    )
    return interview


async def cancel_interview(
    session: AsyncSession,
    actor: Actor,
    interview_id: int,
    reason: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Interview:
    ensure_can(actor, Permission.INTERVIEW_MANAGE)
    interview = await load_or_404(session, Interview, interview_id, "Interview")
    previous = interview.status
    check_transition(previous, InterviewStatus.CANCELLED)

    stamp = now()
    interview.status = InterviewStatus.CANCELLED
    interview.cancelled_at = stamp
    interview.cancelled_by = actor.actor_id
    interview.cancellation_reason = reason
    interview.updated_at = stamp
    await commit_or_conflict(session, "Interview")

    logger.info(
        f"Interview {interview.id} cancelled from {previous.value} by actor {actor.actor_id}"
    )
    _notify(notifier, NotificationEvent.INTERVIEW_CANCELLED, interview, reason=reason)
    return interview


async def set_interview_status(
    session: AsyncSession,
    actor: Actor,
    interview_id: int,
    status: InterviewStatus,
    notifier: Optional[Notifier] = None,
) -> Interview:
    """Mark an interview as started or as a no-show."""
    ensure_can(actor, Permission.INTERVIEW_MANAGE)
    if status not in MANUAL_STATUSES:
        raise ValidationError(
            f"Status {status.value} cannot be set directly",
            field="status",
            allowed=sorted(s.value for s in MANUAL_STATUSES),
        )
    interview = await load_or_404(session, Interview, interview_id, "Interview")
    previous = interview.status
    check_transition(previous, status)

    interview.status = status
    interview.updated_at = now()
    await commit_or_conflict(session, "Interview")

    logger.info(
        f"Interview {interview.id} status: {previous.value} -> {status.value} "
        f"by actor {actor.actor_id}"
    )
    _notify(notifier, NotificationEvent.INTERVIEW_STATUS_CHANGED, interview)
    return interview


async def get_interview(session: AsyncSession, actor: Actor, interview_id: int) -> Interview:
    interview = await load_or_404(session, Interview, interview_id, "Interview")
    _ensure_can_view(actor, interview)
    return interview


async def list_interviews(
    session: AsyncSession,
    actor: Actor,
    application_id: Optional[int] = None,
    job_id: Optional[int] = None,
    status: Optional[InterviewStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Interview]:
    """List interviews. Candidates only see their own."""
    ensure_can(actor, Permission.INTERVIEW_READ)
    query = select(Interview)
    if not actor.is_staff:
        query = query.where(Interview.candidate_id == actor.actor_id)
    if application_id:
        query = query.where(Interview.application_id == application_id)
    if job_id:
        query = query.where(Interview.job_id == job_id)
    if status:
        query = query.where(Interview.status == status)

    query = query.order_by(Interview.scheduled_at, Interview.id).limit(limit).offset(offset)
    result = await session.execute(query)
    return list(result.scalars().all())


async def get_my_schedule(
    session: AsyncSession,
    actor: Actor,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[Interview]:
    """Upcoming interviews on the caller's calendar, earliest first."""
    ensure_can(actor, Permission.INTERVIEW_READ)
    busy_ids = select(InterviewParticipant.interview_id).where(
        InterviewParticipant.interviewer_id == actor.actor_id
    )
    query = select(Interview).where(
        Interview.id.in_(busy_ids),
        Interview.status.in_(list(BLOCKING_STATUSES)),
    )
    if start:
        query = query.where(Interview.ends_at > ensure_utc(start))
    if end:
        query = query.where(Interview.scheduled_at < ensure_utc(end))

    result = await session.execute(query.order_by(Interview.scheduled_at, Interview.id))
    return list(result.scalars().all())
