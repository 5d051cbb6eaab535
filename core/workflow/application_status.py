"""
Application status adjacency table and history rules.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from core.errors import IllegalTransition, ValidationError


class ApplicationStatus(str, Enum):
    """Status of a candidate's application."""

    PENDING = "pending"
    REVIEWING = "reviewing"
    SHORTLISTED = "shortlisted"
    INTERVIEWING = "interviewing"
    OFFER_PENDING = "offer_pending"
    ON_HOLD = "on_hold"
    REJECTED = "rejected"
    ACCEPTED = "accepted"
    WITHDRAWN = "withdrawn"


class ScoringStatus(str, Enum):
    NOT_REQUESTED = "not_requested"
    SCORED = "scored"
    UNSCORED = "unscored"
    TIMED_OUT = "timed_out"


TERMINAL_STATUSES = frozenset(
    {ApplicationStatus.REJECTED, ApplicationStatus.ACCEPTED, ApplicationStatus.WITHDRAWN}
)

# Withdrawn is not listed here. It is reachable only through withdraw().
ADJACENCY: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset(
        {ApplicationStatus.REVIEWING, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.REVIEWING: frozenset(
        {ApplicationStatus.SHORTLISTED, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.SHORTLISTED: frozenset(
        {ApplicationStatus.INTERVIEWING, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.INTERVIEWING: frozenset(
        {
            ApplicationStatus.OFFER_PENDING,
            ApplicationStatus.ON_HOLD,
            ApplicationStatus.REJECTED,
        }
    ),
    ApplicationStatus.ON_HOLD: frozenset(
        {ApplicationStatus.INTERVIEWING, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.OFFER_PENDING: frozenset(
        {ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.REJECTED: frozenset(),
    ApplicationStatus.ACCEPTED: frozenset(),
    ApplicationStatus.WITHDRAWN: frozenset(),
}

# Statuses an application may be nudged out of when its first interview is booked.
NUDGEABLE_STATUSES = frozenset({ApplicationStatus.PENDING, ApplicationStatus.REVIEWING})

HISTORY_TICK = timedelta(microseconds=1)
OVERRIDE_MARKER = "[override]"


def allowed_next(current: ApplicationStatus) -> frozenset[ApplicationStatus]:
    return ADJACENCY[current]


def is_terminal(status: ApplicationStatus) -> bool:
    return status in TERMINAL_STATUSES


def check_transition(
    current: ApplicationStatus, requested: ApplicationStatus
) -> ApplicationStatus:
    """
    Validate a regular status change.

    Raises:
        IllegalTransition: If ``requested`` is not adjacent to ``current``
    """
    if requested not in allowed_next(current):
        raise IllegalTransition(
            f"Cannot move application from {current.value} to {requested.value}",
            current=current.value,
            requested=requested.value,
        )
    return requested


def check_withdraw(current: ApplicationStatus) -> ApplicationStatus:
    if is_terminal(current):
        raise IllegalTransition(
            f"Cannot withdraw an application in status {current.value}",
            current=current.value,
            requested=ApplicationStatus.WITHDRAWN.value,
        )
    return ApplicationStatus.WITHDRAWN


def interview_nudge_target(current: ApplicationStatus) -> Optional[ApplicationStatus]:
    """
    Status an application moves to when an interview is scheduled for it.

    Returns ``None`` when the application is already past the early review
    stages, so scheduling never regresses it.
    """
    if current in NUDGEABLE_STATUSES:
        return ApplicationStatus.INTERVIEWING
    return None


def check_override_note(note: Optional[str]) -> str:
    if note is None or not note.strip():
        raise ValidationError("An override requires a note", field="note")
    return f"{OVERRIDE_MARKER} {note.strip()}"


def next_history_timestamp(now: datetime, last: Optional[datetime]) -> datetime:
    """Return a timestamp strictly after ``last``, preferring ``now``."""
    if last is None or now > last:
        return now
    return last + HISTORY_TICK
