"""
Interview scheduling rules: status machine, interval overlap, candidate responses.

Intervals are half-open, ``[start, start + duration)``, so back-to-back
interviews never conflict.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Sequence

from core.errors import IllegalTransition, InvalidResponse, ValidationError


class InterviewStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    RESCHEDULED = "rescheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class InterviewType(str, Enum):
    PHONE_SCREEN = "phone_screen"
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    CULTURAL_FIT = "cultural_fit"
    HIRING_MANAGER = "hiring_manager"
    HR_ROUND = "hr_round"
    PANEL = "panel"
    EXECUTIVE = "executive"
    FINAL = "final"


class PanelRole(str, Enum):
    LEAD = "lead"
    INTERVIEWER = "interviewer"
    OBSERVER = "observer"


class CandidateResponse(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


TERMINAL_STATUSES = frozenset(
    {InterviewStatus.COMPLETED, InterviewStatus.CANCELLED, InterviewStatus.NO_SHOW}
)

# Statuses that occupy an interviewer's calendar.
BLOCKING_STATUSES = frozenset(
    {InterviewStatus.SCHEDULED, InterviewStatus.CONFIRMED, InterviewStatus.RESCHEDULED}
)

_UPCOMING_NEXT = frozenset(
    {
        InterviewStatus.CONFIRMED,
        InterviewStatus.RESCHEDULED,
        InterviewStatus.IN_PROGRESS,
        InterviewStatus.COMPLETED,
        InterviewStatus.CANCELLED,
        InterviewStatus.NO_SHOW,
    }
)

_ADJACENCY: dict[InterviewStatus, frozenset[InterviewStatus]] = {
    InterviewStatus.SCHEDULED: _UPCOMING_NEXT,
    InterviewStatus.CONFIRMED: _UPCOMING_NEXT - {InterviewStatus.CONFIRMED},
    InterviewStatus.RESCHEDULED: _UPCOMING_NEXT,
    InterviewStatus.IN_PROGRESS: frozenset(
        {InterviewStatus.COMPLETED, InterviewStatus.CANCELLED}
    ),
    InterviewStatus.COMPLETED: frozenset(),
    InterviewStatus.CANCELLED: frozenset(),
    InterviewStatus.NO_SHOW: frozenset(),
}

# Statuses staff may set directly through set_status.
MANUAL_STATUSES = frozenset({InterviewStatus.IN_PROGRESS, InterviewStatus.NO_SHOW})


def allowed_next(current: InterviewStatus) -> frozenset[InterviewStatus]:
    return _ADJACENCY[current]


def is_terminal(status: InterviewStatus) -> bool:
    return status in TERMINAL_STATUSES


def check_transition(
    current: InterviewStatus, requested: InterviewStatus
) -> InterviewStatus:
    if requested not in allowed_next(current):
        raise IllegalTransition(
            f"Cannot move interview from {current.value} to {requested.value}",
            current=current.value,
            requested=requested.value,
        )
    return requested


@dataclass(frozen=True)
class Interval:
    """Half-open time interval ``[start, start + duration)``."""

    start: datetime
    duration_minutes: int

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class Booking:
    """An existing interview as seen by the conflict check."""

    interview_id: int
    interviewer_ids: frozenset[int]
    interval: Interval
    status: InterviewStatus

    @property
    def blocks_calendar(self) -> bool:
        return self.status in BLOCKING_STATUSES


def find_conflict(
    proposed: Interval,
    interviewer_ids: Sequence[int],
    bookings: Iterable[Booking],
    exclude_interview_id: Optional[int] = None,
) -> Optional[tuple[int, int]]:
    """
    Find the first interviewer double-booked by ``proposed``.

    Args:
        proposed: Interval being booked
        interviewer_ids: Interviewers on the proposed panel, in panel order
        bookings: Existing interviews that may overlap
        exclude_interview_id: Interview being rescheduled, ignored by the check

    Returns:
        ``(interviewer_id, conflicting_interview_id)`` or ``None``
    """
    candidates = sorted(
        (
            b
            for b in bookings
            if b.interview_id != exclude_interview_id
            and b.blocks_calendar
            and b.interval.overlaps(proposed)
        ),
        key=lambda b: (b.interval.start, b.interview_id),
    )
    for interviewer_id in interviewer_ids:
        for booking in candidates:
            if interviewer_id in booking.interviewer_ids:
                return interviewer_id, booking.interview_id
    return None


def validate_panel(
    interviewer_ids: Sequence[int], round_number: int, duration_minutes: int
) -> None:
    """Reject malformed scheduling requests before any lookup."""
    if not interviewer_ids:
        raise ValidationError("At least one interviewer is required", field="interviewers")
    if len(set(interviewer_ids)) != len(interviewer_ids):
        raise ValidationError("Interviewer ids must be unique", field="interviewers")
    if round_number < 1:
        raise ValidationError("Interview round must be at least 1", field="round")
    validate_duration(duration_minutes)


def validate_duration(duration_minutes: int) -> None:
    if duration_minutes <= 0:
        raise ValidationError(
            "Interview duration must be positive", field="duration_minutes"
        )


def response_to_status(
    current: InterviewStatus, response: str
) -> tuple[CandidateResponse, InterviewStatus]:
    """
    Map a candidate's response onto the interview status it produces.

    Accepting an already confirmed interview leaves it confirmed.

    Raises:
        InvalidResponse: If the response is not ``accepted`` or ``declined``
        IllegalTransition: If the interview is already finished
    """
    try:
        parsed = CandidateResponse(response)
    except ValueError:
        parsed = None
    if parsed not in (CandidateResponse.ACCEPTED, CandidateResponse.DECLINED):
        raise InvalidResponse(
            f"Invalid response: {response!r}. Use 'accepted' or 'declined'",
            field="response",
        )

    if is_terminal(current) or current == InterviewStatus.IN_PROGRESS:
        raise IllegalTransition(
            f"Cannot respond to an interview in status {current.value}",
            current=current.value,
            requested=parsed.value,
        )

    if parsed == CandidateResponse.ACCEPTED:
        if current == InterviewStatus.CONFIRMED:
            return parsed, current
        return parsed, check_transition(current, InterviewStatus.CONFIRMED)
    return parsed, check_transition(current, InterviewStatus.CANCELLED)
