"""
Workflow error taxonomy.

Every command either commits or raises one of these. Each error carries a
machine-readable ``kind`` and the HTTP status the API layer maps it to.
``SyncFailure`` is the exception to the rule: it is never raised past the
service layer and is returned as a warning next to a successful result.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Machine-readable error kinds returned to API callers."""

    VALIDATION_ERROR = "validation_error"
    INVALID_RESPONSE = "invalid_response"
    ILLEGAL_TRANSITION = "illegal_transition"
    JOB_NOT_ACCEPTING_APPLICATIONS = "job_not_accepting_applications"
    SCHEDULING_CONFLICT = "scheduling_conflict"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    UNAUTHENTICATED = "unauthenticated"
    DUPLICATE_APPLICATION = "duplicate_application"
    SYNC_FAILURE = "sync_failure"
    CONCURRENT_MODIFICATION = "concurrent_modification"


class WorkflowError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.VALIDATION_ERROR
    status_code: int = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = {k: v for k, v in details.items() if v is not None}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(WorkflowError):
    """Malformed or missing input."""

    kind = ErrorKind.VALIDATION_ERROR
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None, **details: Any):
        super().__init__(message, field=field, **details)
        self.field = field


class InvalidResponse(ValidationError):
    """Candidate response outside the accepted vocabulary."""

    kind = ErrorKind.INVALID_RESPONSE


class IllegalTransition(WorkflowError):
    """State-machine edge not permitted from the current state."""

    kind = ErrorKind.ILLEGAL_TRANSITION
    status_code = 409

    def __init__(
        self,
        message: str,
        current: Optional[str] = None,
        requested: Optional[str] = None,
        **details: Any,
    ):
        super().__init__(message, current=current, requested=requested, **details)
        self.current = current
        self.requested = requested


class JobNotAcceptingApplications(IllegalTransition):
    """Job is not open, or is internal-only and the applicant is not verified staff."""

    kind = ErrorKind.JOB_NOT_ACCEPTING_APPLICATIONS


class SchedulingConflict(WorkflowError):
    """An interviewer is already booked for an overlapping interval."""

    kind = ErrorKind.SCHEDULING_CONFLICT
    status_code = 409

    def __init__(self, interviewer_id: int, conflicting_interview_id: int):
        super().__init__(
            f"Interviewer {interviewer_id} has a scheduling conflict with "
            f"interview {conflicting_interview_id}",
            interviewer_id=interviewer_id,
            conflicting_interview_id=conflicting_interview_id,
        )
        self.interviewer_id = interviewer_id
        self.conflicting_interview_id = conflicting_interview_id


class NotFound(WorkflowError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", entity=entity, id=entity_id)


class Forbidden(WorkflowError):
    """Role or ownership check failed."""

    kind = ErrorKind.FORBIDDEN
    status_code = 403


class Unauthenticated(WorkflowError):
    kind = ErrorKind.UNAUTHENTICATED
    status_code = 401


class DuplicateApplication(WorkflowError):
    kind = ErrorKind.DUPLICATE_APPLICATION
    status_code = 409

    def __init__(self, candidate_id: int, job_id: int):
        super().__init__(
            "Candidate has already applied to this job",
            candidate_id=candidate_id,
            job_id=job_id,
        )


class ConcurrentModification(WorkflowError):
    """Optimistic version check failed; the caller should reload and retry."""

    kind = ErrorKind.CONCURRENT_MODIFICATION
    status_code = 409


class SyncFailure(WorkflowError):
    """
    Cross-entity propagation failed after the primary commit succeeded.

    Reported as a warning, never raised to the HTTP layer.
    """

    kind = ErrorKind.SYNC_FAILURE
    status_code = 200
