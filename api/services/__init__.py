"""
API Services Layer.

Command handlers for the hiring pipeline. Each function takes an
``AsyncSession`` and the calling ``Actor``, runs the workflow rules and
either commits or raises a ``WorkflowError``.
"""

from api.services.jobs import (
    apply_job_action,
    create_job,
    get_job,
)

from api.services.applications import (
    apply_to_job,
    get_application,
    get_application_history,
    override_application_status,
    update_application_status,
    withdraw_application,
)

from api.services.interviews import (
    PanelMember,
    cancel_interview,
    get_interview,
    get_my_schedule,
    list_interviews,
    reschedule_interview,
    respond_to_interview,
    schedule_interview,
    set_interview_status,
)

from api.services.feedback import (
    DecisionOutcome,
    decide,
    submit_feedback,
)

__all__ = [
    # Jobs
    "create_job",
    "get_job",
    "apply_job_action",
    # Applications
    "apply_to_job",
    "get_application",
    "get_application_history",
    "update_application_status",
    "withdraw_application",
    "override_application_status",
    # Interviews
    "PanelMember",
    "schedule_interview",
    "reschedule_interview",
    "respond_to_interview",
    "cancel_interview",
    "set_interview_status",
    "get_interview",
    "list_interviews",
    "get_my_schedule",
    # Feedback
    "DecisionOutcome",
    "submit_feedback",
    "decide",
]
