"""Job requisition schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from core.workflow.requisition import JobStatus, JobVisibility


class JobCreateRequest(BaseModel):
    """Request model for creating a draft job."""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    department: Optional[str] = Field(None, max_length=255)
    hiring_manager_id: Optional[int] = None
    positions: int = Field(1, ge=1)
    visibility: JobVisibility = JobVisibility.PUBLIC


class JobRejectRequest(BaseModel):
    reason: str = Field(..., description="Why the requisition was rejected")


class JobRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    department: Optional[str] = None
    hiring_manager_id: Optional[int] = None
    positions: int
    visibility: JobVisibility
    status: JobStatus

    submitted_by: Optional[int] = None
    submitted_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    opened_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    filled_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    created_by: int
    created_at: datetime
    updated_at: datetime
    version: int
