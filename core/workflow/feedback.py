"""
Feedback completeness and decision-to-application mapping.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional

from core.errors import IllegalTransition, SyncFailure, ValidationError
from core.workflow.application_status import ApplicationStatus, check_transition
from core.workflow.scheduling import InterviewStatus


class Decision(str, Enum):
    ADVANCE = "advance"
    OFFER = "offer"
    REJECT = "reject"
    HOLD = "hold"


class Recommendation(str, Enum):
    STRONG_HIRE = "strong_hire"
    HIRE = "hire"
    NO_DECISION = "no_decision"
    NO_HIRE = "no_hire"
    STRONG_NO_HIRE = "strong_no_hire"


RATING_FIELDS = (
    "technical_skills",
    "communication",
    "problem_solving",
    "culture_fit",
    "overall",
)
RATING_MIN = 1
RATING_MAX = 5

DECISION_TO_APPLICATION_STATUS: dict[Decision, ApplicationStatus] = {
    Decision.ADVANCE: ApplicationStatus.INTERVIEWING,
    Decision.OFFER: ApplicationStatus.OFFER_PENDING,
    Decision.REJECT: ApplicationStatus.REJECTED,
    Decision.HOLD: ApplicationStatus.ON_HOLD,
}

# Feedback cannot be recorded for interviews that never took place.
FEEDBACK_CLOSED_STATUSES = frozenset({InterviewStatus.CANCELLED, InterviewStatus.NO_SHOW})


def check_feedback_allowed(status: InterviewStatus) -> None:
    if status in FEEDBACK_CLOSED_STATUSES:
        raise IllegalTransition(
            f"Cannot submit feedback for an interview in status {status.value}",
            current=status.value,
            requested="submit_feedback",
        )


def validate_ratings(ratings: Mapping[str, Optional[int]]) -> dict[str, int]:
    """Drop unset ratings and range-check the rest."""
    cleaned: dict[str, int] = {}
    for name, value in ratings.items():
        if name not in RATING_FIELDS:
            raise ValidationError(f"Unknown rating: {name}", field=f"ratings.{name}")
        if value is None:
            continue
        if not RATING_MIN <= value <= RATING_MAX:
            raise ValidationError(
                f"Rating {name} must be between {RATING_MIN} and {RATING_MAX}",
                field=f"ratings.{name}",
            )
        cleaned[name] = value
    return cleaned


def is_feedback_complete(
    interviewer_ids: Iterable[int], submitter_ids: Iterable[int]
) -> bool:
    """True once every listed interviewer has submitted feedback."""
    required = set(interviewer_ids)
    return bool(required) and required.issubset(set(submitter_ids))


@dataclass(frozen=True)
class SyncPlan:
    """
    Outcome of mapping a decision onto an application.

    Exactly one of the following holds: ``target`` is set and the application
    should move, ``failure`` is set and the application stays put, or neither
    is set and the application is already where the decision points.
    """

    decision: Decision
    current: ApplicationStatus
    target: Optional[ApplicationStatus] = None
    failure: Optional[SyncFailure] = None

    @property
    def is_noop(self) -> bool:
        return self.target is None and self.failure is None


def plan_decision_sync(current: ApplicationStatus, decision: Decision) -> SyncPlan:
    target = DECISION_TO_APPLICATION_STATUS[decision]
    if current == target:
        return SyncPlan(decision=decision, current=current)
    try:
        check_transition(current, target)
    except IllegalTransition as exc:
        return SyncPlan(
            decision=decision,
            current=current,
            failure=SyncFailure(
                f"Decision {decision.value} recorded but application could not move "
                f"from {current.value} to {target.value}",
                decision=decision.value,
                application_status=current.value,
                target_status=target.value,
                reason=exc.message,
            ),
        )
    return SyncPlan(decision=decision, current=current, target=target)
