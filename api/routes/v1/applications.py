"""
Application endpoints.

Apply to a job, read an application and its history, move it through review,
withdraw it, or override its status as an administrator.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_actor,
    get_db,
    get_notifier,
    get_policy,
    get_scoring_oracle,
)
from api.schemas.applications import (
    ApplicationRead,
    ApplyRequest,
    OverrideRequest,
    StatusHistoryRead,
    StatusUpdateRequest,
    WithdrawRequest,
)
from api.schemas.common import ApiResponse
from api.services import applications as application_service
from core.integrations.notifier import Notifier
from core.integrations.scoring import ScoringOracle
from core.permissions import Actor
from core.policy import CompanyPolicy

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[ApplicationRead],
    summary="Apply to Job",
    description="Submit an application for the calling candidate.",
)
async def apply(
    request: ApplyRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    scoring_oracle: Optional[ScoringOracle] = Depends(get_scoring_oracle),
):
    application = await application_service.apply_to_job(
        db,
        actor,
        request.job_id,
        cover_letter=request.cover_letter,
        resume_url=request.resume_url,
        resume_text=request.resume_text,
        notifier=notifier,
        scoring_oracle=scoring_oracle,
    )
    return ApiResponse.ok(ApplicationRead.model_validate(application))


@router.get(
    "/{application_id}",
    response_model=ApiResponse[ApplicationRead],
    summary="Get Application",
)
async def get_application(
    application_id: int = Path(..., description="Application ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    application = await application_service.get_application(db, actor, application_id)
    return ApiResponse.ok(ApplicationRead.model_validate(application))


@router.get(
    "/{application_id}/history",
    response_model=ApiResponse[list[StatusHistoryRead]],
    summary="Get Application History",
)
async def get_application_history(
    application_id: int = Path(..., description="Application ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    history = await application_service.get_application_history(db, actor, application_id)
    return ApiResponse.ok([StatusHistoryRead.model_validate(h) for h in history])


@router.put(
    "/{application_id}/status",
    response_model=ApiResponse[ApplicationRead],
    summary="Update Application Status",
    description="Move an application to the next review stage.",
)
async def update_status(
    request: StatusUpdateRequest,
    application_id: int = Path(..., description="Application ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    application = await application_service.update_application_status(
        db, actor, application_id, request.status, note=request.note, notifier=notifier
    )
    return ApiResponse.ok(ApplicationRead.model_validate(application))


@router.put(
    "/{application_id}/withdraw",
    response_model=ApiResponse[ApplicationRead],
    summary="Withdraw Application",
)
async def withdraw(
    request: Optional[WithdrawRequest] = None,
    application_id: int = Path(..., description="Application ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    policy: CompanyPolicy = Depends(get_policy),
    notifier: Notifier = Depends(get_notifier),
):
    application = await application_service.withdraw_application(
        db,
        actor,
        application_id,
        policy,
        reason=request.reason if request else None,
        notifier=notifier,
    )
    return ApiResponse.ok(ApplicationRead.model_validate(application))


@router.put(
    "/{application_id}/override",
    response_model=ApiResponse[ApplicationRead],
    summary="Override Application Status",
    description="Administrative status change. Requires application:override permission.",
)
async def override_status(
    request: OverrideRequest,
    application_id: int = Path(..., description="Application ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    application = await application_service.override_application_status(
        db, actor, application_id, request.status, request.note, notifier=notifier
    )
    return ApiResponse.ok(ApplicationRead.model_validate(application))
