"""Application schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from core.workflow.application_status import ApplicationStatus, ScoringStatus


class ApplyRequest(BaseModel):
    """Request model for applying to a job."""

    job_id: int
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = Field(None, max_length=1000)
    resume_text: Optional[str] = Field(
        None, description="Plain resume text forwarded to the scoring service"
    )


class StatusUpdateRequest(BaseModel):
    status: ApplicationStatus
    note: Optional[str] = None


class WithdrawRequest(BaseModel):
    reason: Optional[str] = None


class OverrideRequest(BaseModel):
    status: ApplicationStatus
    note: str = Field(..., description="Justification, recorded in the history")


class StatusHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: ApplicationStatus
    actor_id: int
    note: Optional[str] = None
    changed_at: datetime


class ApplicationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    candidate_id: int
    job_id: int
    status: ApplicationStatus
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None
    withdrawn_at: Optional[datetime] = None
    withdrawn_reason: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    match_score: Optional[float] = None
    match_summary: Optional[str] = None
    scoring_status: ScoringStatus
    applied_at: datetime
    updated_at: datetime
    version: int
    status_history: list[StatusHistoryRead] = Field(default_factory=list)
