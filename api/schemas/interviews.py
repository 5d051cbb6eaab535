"""Interview, feedback and decision schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.workflow.feedback import Decision, Recommendation
from core.workflow.scheduling import (
    CandidateResponse,
    InterviewStatus,
    InterviewType,
    PanelRole,
)
from api.schemas.applications import ApplicationRead


# ==================== Requests ===================== #
class PanelMemberRequest(BaseModel):
    interviewer_id: int
    role_in_panel: PanelRole = PanelRole.INTERVIEWER


class ScheduleRequest(BaseModel):
    """Request model for scheduling an interview."""

    application_id: int
    round: int = Field(1, description="Interview round, starting at 1")
    interviewers: list[PanelMemberRequest] = Field(
        ..., description="Interview panel, at least one interviewer"
    )
    scheduled_at: datetime = Field(..., description="Start time (ISO 8601)")
    duration_minutes: Optional[int] = Field(
        None, description="Length in minutes, defaults to the configured duration"
    )
    interview_type: InterviewType = InterviewType.TECHNICAL
    title: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=500)
    timezone: str = "UTC"


class RescheduleRequest(BaseModel):
    scheduled_at: datetime = Field(..., description="New start time")
    duration_minutes: Optional[int] = None
    reason: Optional[str] = None


class RespondRequest(BaseModel):
    # Plain string so unknown values reach the service and fail as invalid_response.
    response: str = Field(..., description="accepted or declined")
    note: Optional[str] = None


class StatusRequest(BaseModel):
    status: InterviewStatus


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class RatingsRequest(BaseModel):
    technical_skills: Optional[int] = None
    communication: Optional[int] = None
    problem_solving: Optional[int] = None
    culture_fit: Optional[int] = None
    overall: Optional[int] = None


class FeedbackRequest(BaseModel):
    recommendation: Recommendation
    ratings: RatingsRequest = Field(default_factory=RatingsRequest)
    strengths: Optional[str] = None
    areas_of_improvement: Optional[str] = None
    notes: Optional[str] = None
    private_notes: Optional[str] = None
    interviewer_id: Optional[int] = Field(
        None, description="Submit on behalf of this interviewer (HR/admin only)"
    )


class DecisionRequest(BaseModel):
    decision: Decision
    notes: Optional[str] = None


# ==================== Responses ===================== #
class ParticipantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    interviewer_id: int
    role_in_panel: PanelRole
    confirmed: bool


class FeedbackRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    interviewer_id: int
    submitted_by: int
    ratings: dict[str, int]
    recommendation: Recommendation
    strengths: Optional[str] = None
    areas_of_improvement: Optional[str] = None
    notes: Optional[str] = None
    private_notes: Optional[str] = None
    submitted_at: datetime


class RescheduleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    previous_time: datetime
    new_time: datetime
    reason: Optional[str] = None
    requested_by: int
    requested_at: datetime


class DecisionAuditRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    previous_decision: Optional[Decision] = None
    new_decision: Decision
    actor_id: int
    notes: Optional[str] = None
    decided_at: datetime


class InterviewRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    job_id: int
    candidate_id: int
    round: int
    interview_type: InterviewType
    title: Optional[str] = None
    location: Optional[str] = None
    timezone: str
    status: InterviewStatus
    scheduled_at: datetime
    duration_minutes: int
    ends_at: datetime
    candidate_response: CandidateResponse
    responded_at: Optional[datetime] = None
    response_note: Optional[str] = None
    decision: Optional[Decision] = None
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    decision_notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    cancellation_reason: Optional[str] = None
    created_by: int
    created_at: datetime
    updated_at: datetime
    version: int
    participants: list[ParticipantRead] = Field(default_factory=list)
    feedback: list[FeedbackRead] = Field(default_factory=list)
    reschedule_history: list[RescheduleRead] = Field(default_factory=list)
    decision_audit: list[DecisionAuditRead] = Field(default_factory=list)

    @classmethod
    def from_interview(
        cls,
        interview: Any,
        include_feedback: bool = True,
        include_private: bool = False,
    ) -> "InterviewRead":
        """Serialise an interview, hiding feedback the caller may not see."""
        read = cls.model_validate(interview)
        if not include_feedback:
            read.feedback = []
        elif not include_private:
            for entry in read.feedback:
                entry.private_notes = None
        return read


class DecisionRead(BaseModel):
    interview: InterviewRead
    application: ApplicationRead
