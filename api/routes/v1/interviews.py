"""
Interview scheduling, feedback and decision endpoints.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_actor,
    get_db,
    get_default_duration,
    get_lock_manager,
    get_notifier,
)
from api.schemas.applications import ApplicationRead
from api.schemas.common import ApiResponse, PaginationParams
from api.schemas.interviews import (
    CancelRequest,
    DecisionRead,
    DecisionRequest,
    FeedbackRequest,
    InterviewRead,
    RescheduleRequest,
    RespondRequest,
    ScheduleRequest,
    StatusRequest,
)
from api.services import feedback as feedback_service
from api.services import interviews as interview_service
from api.services.interviews import PanelMember
from core.integrations.notifier import Notifier
from core.permissions import Actor, Permission, can_perform
from core.workflow.scheduling import InterviewStatus

router = APIRouter(prefix="/interviews", tags=["interviews"])


def _read(interview, actor: Actor) -> InterviewRead:
    return InterviewRead.from_interview(
        interview,
        include_feedback=actor.is_staff,
        include_private=can_perform(actor.role, Permission.INTERVIEW_FEEDBACK_ANY),
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[InterviewRead],
    summary="Schedule Interview",
    description="Schedule an interview round. Fails with scheduling_conflict if any interviewer is booked.",
)
async def schedule_interview(
    request: ScheduleRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    locks=Depends(get_lock_manager),
    notifier: Notifier = Depends(get_notifier),
    default_duration: int = Depends(get_default_duration),
):
    interview = await interview_service.schedule_interview(
        db,
        actor,
        locks,
        application_id=request.application_id,
        panel=[
            PanelMember(m.interviewer_id, m.role_in_panel) for m in request.interviewers
        ],
        scheduled_at=request.scheduled_at,
        duration_minutes=request.duration_minutes or default_duration,
        round_number=request.round,
        interview_type=request.interview_type,
        title=request.title,
        location=request.location,
        timezone=request.timezone,
        notifier=notifier,
    )
    return ApiResponse.ok(_read(interview, actor))


@router.get(
    "",
    response_model=ApiResponse[list[InterviewRead]],
    summary="List Interviews",
)
async def list_interviews(
    application_id: Optional[int] = Query(None, description="Filter by application"),
    job_id: Optional[int] = Query(None, description="Filter by job"),
    status_filter: Optional[InterviewStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    pagination = PaginationParams(page=page, page_size=page_size)
    interviews = await interview_service.list_interviews(
        db,
        actor,
        application_id=application_id,
        job_id=job_id,
        status=status_filter,
        limit=pagination.page_size,
        offset=pagination.offset,
    )
    return ApiResponse.ok([_read(i, actor) for i in interviews])


@router.get(
    "/my-schedule",
    response_model=ApiResponse[list[InterviewRead]],
    summary="My Interview Schedule",
    description="Upcoming interviews where the caller is on the panel.",
)
async def my_schedule(
    start: Optional[datetime] = Query(None, description="Window start"),
    end: Optional[datetime] = Query(None, description="Window end"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    interviews = await interview_service.get_my_schedule(db, actor, start=start, end=end)
    return ApiResponse.ok([_read(i, actor) for i in interviews])


@router.get(
    "/{interview_id}",
    response_model=ApiResponse[InterviewRead],
    summary="Get Interview",
)
async def get_interview(
    interview_id: int = Path(..., description="Interview ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    interview = await interview_service.get_interview(db, actor, interview_id)
    return ApiResponse.ok(_read(interview, actor))


@router.put(
    "/{interview_id}",
    response_model=ApiResponse[InterviewRead],
    summary="Reschedule Interview",
)
async def reschedule_interview(
    request: RescheduleRequest,
    interview_id: int = Path(..., description="Interview ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    locks=Depends(get_lock_manager),
    notifier: Notifier = Depends(get_notifier),
):
    interview = await interview_service.reschedule_interview(
        db,
        actor,
        locks,
        interview_id,
        new_time=request.scheduled_at,
        reason=request.reason,
        duration_minutes=request.duration_minutes,
        notifier=notifier,
    )
    return ApiResponse.ok(_read(interview, actor))


@router.put(
    "/{interview_id}/respond",
    response_model=ApiResponse[InterviewRead],
    summary="Respond to Interview",
    description="Candidate accepts or declines an interview invitation.",
)
async def respond(
    request: RespondRequest,
    interview_id: int = Path(..., description="Interview ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    interview = await interview_service.respond_to_interview(
        db, actor, interview_id, request.response, note=request.note, notifier=notifier
    )
    return ApiResponse.ok(_read(interview, actor))


@router.put(
    "/{interview_id}/status",
    response_model=ApiResponse[InterviewRead],
    summary="Set Interview Status",
    description="Mark an interview as in_progress or no_show.",
)
async def set_status(
    request: StatusRequest,
    interview_id: int = Path(..., description="Interview ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    interview = await interview_service.set_interview_status(
        db, actor, interview_id, request.status, notifier=notifier
    )
    return ApiResponse.ok(_read(interview, actor))


@router.delete(
    "/{interview_id}",
    response_model=ApiResponse[InterviewRead],
    summary="Cancel Interview",
)
async def cancel_interview(
    request: Optional[CancelRequest] = None,
    interview_id: int = Path(..., description="Interview ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    interview = await interview_service.cancel_interview(
        db,
        actor,
        interview_id,
        reason=request.reason if request else None,
        notifier=notifier,
    )
    return ApiResponse.ok(_read(interview, actor))


@router.post(
    "/{interview_id}/feedback",
    response_model=ApiResponse[InterviewRead],
    summary="Submit Feedback",
    description="Create or replace the caller's feedback. Completes the interview once all interviewers have submitted.",
)
async def submit_feedback(
    request: FeedbackRequest,
    interview_id: int = Path(..., description="Interview ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    interview = await feedback_service.submit_feedback(
        db,
        actor,
        interview_id,
        recommendation=request.recommendation,
        ratings=request.ratings.model_dump(),
        strengths=request.strengths,
        areas_of_improvement=request.areas_of_improvement,
        notes=request.notes,
        private_notes=request.private_notes,
        interviewer_id=request.interviewer_id,
        notifier=notifier,
    )
    return ApiResponse.ok(_read(interview, actor))


@router.post(
    "/{interview_id}/decision",
    response_model=ApiResponse[DecisionRead],
    summary="Make Decision",
    description=(
        "Record a hiring decision and move the application. If the application "
        "cannot follow, the decision is kept and a sync_failure warning is returned."
    ),
)
async def make_decision(
    request: DecisionRequest,
    interview_id: int = Path(..., description="Interview ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    outcome = await feedback_service.decide(
        db, actor, interview_id, request.decision, notes=request.notes, notifier=notifier
    )
    data = DecisionRead(
        interview=_read(outcome.interview, actor),
        application=ApplicationRead.model_validate(outcome.application),
    )
    return ApiResponse.ok(data, warnings=outcome.warnings)
