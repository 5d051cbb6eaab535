"""
Job requisition endpoints.

Create drafts and drive the requisition lifecycle: submit, approve, reject,
open, pause, close, fill and cancel.
"""

from fastapi import APIRouter, Body, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_db, get_notifier, get_policy
from api.schemas.common import ApiResponse
from api.schemas.jobs import JobCreateRequest, JobRead, JobRejectRequest
from api.services import jobs as job_service
from core.integrations.notifier import Notifier
from core.permissions import Actor
from core.policy import CompanyPolicy
from core.workflow.requisition import JobAction

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[JobRead],
    summary="Create Job",
    description="Create a job requisition in draft. Requires job:create permission.",
)
async def create_job(
    request: JobCreateRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.create_job(
        db,
        actor,
        title=request.title,
        description=request.description,
        location=request.location,
        department=request.department,
        hiring_manager_id=request.hiring_manager_id,
        positions=request.positions,
        visibility=request.visibility,
    )
    return ApiResponse.ok(JobRead.model_validate(job))


@router.get(
    "/{job_id}",
    response_model=ApiResponse[JobRead],
    summary="Get Job",
)
async def get_job(
    job_id: int = Path(..., description="Job ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.get_job(db, actor, job_id)
    return ApiResponse.ok(JobRead.model_validate(job))


@router.post(
    "/{job_id}/reject",
    response_model=ApiResponse[JobRead],
    summary="Reject Job",
    description="Reject a job pending approval. A reason is required.",
)
async def reject_job(
    job_id: int = Path(..., description="Job ID"),
    request: JobRejectRequest = Body(...),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    policy: CompanyPolicy = Depends(get_policy),
    notifier: Notifier = Depends(get_notifier),
):
    job = await job_service.apply_job_action(
        db,
        actor,
        job_id,
        JobAction.REJECT,
        policy,
        reason=request.reason,
        notifier=notifier,
    )
    return ApiResponse.ok(JobRead.model_validate(job))


@router.post(
    "/{job_id}/{action}",
    response_model=ApiResponse[JobRead],
    summary="Apply Job Lifecycle Action",
    description=(
        "Apply one of submit, approve, open, pause, close, fill or cancel to a job."
    ),
)
async def apply_job_action(
    job_id: int = Path(..., description="Job ID"),
    action: JobAction = Path(..., description="Lifecycle action"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    policy: CompanyPolicy = Depends(get_policy),
    notifier: Notifier = Depends(get_notifier),
):
    job = await job_service.apply_job_action(
        db, actor, job_id, action, policy, notifier=notifier
    )
    return ApiResponse.ok(JobRead.model_validate(job))
