"""
Tests for feedback completeness, rating validation and decision sync planning.
"""

import pytest

from core.errors import IllegalTransition, ValidationError
from core.workflow.application_status import ApplicationStatus
from core.workflow.feedback import (
    Decision,
    check_feedback_allowed,
    is_feedback_complete,
    plan_decision_sync,
    validate_ratings,
)
from core.workflow.scheduling import InterviewStatus


class TestFeedbackAllowed:

    @pytest.mark.parametrize("status", [
        InterviewStatus.SCHEDULED,
        InterviewStatus.CONFIRMED,
        InterviewStatus.IN_PROGRESS,
        InterviewStatus.COMPLETED,
    ])
    def test_open_statuses(self, status):
        check_feedback_allowed(status)

    @pytest.mark.parametrize("status", [InterviewStatus.CANCELLED, InterviewStatus.NO_SHOW])
    def test_closed_statuses(self, status):
        with pytest.raises(IllegalTransition):
            check_feedback_allowed(status)


class TestRatings:

    def test_unset_ratings_are_dropped(self):
        assert validate_ratings({"overall": 4, "communication": None}) == {"overall": 4}

    @pytest.mark.parametrize("value", [0, 6, -1])
    def test_out_of_range(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_ratings({"technical_skills": value})

        assert exc_info.value.field == "ratings.technical_skills"

    def test_unknown_rating(self):
        with pytest.raises(ValidationError):
            validate_ratings({"charisma": 3})

    def test_bounds_are_inclusive(self):
        assert validate_ratings({"overall": 1, "culture_fit": 5}) == {
            "overall": 1,
            "culture_fit": 5,
        }


class TestCompleteness:

    def test_complete_when_every_interviewer_submitted(self):
        assert is_feedback_complete([7, 8], [8, 7])

    def test_incomplete_with_missing_interviewer(self):
        assert not is_feedback_complete([7, 8], [7])

    def test_extra_submitters_do_not_matter(self):
        assert is_feedback_complete([7], [7, 99])

    def test_empty_panel_is_never_complete(self):
        assert not is_feedback_complete([], [7])


class TestDecisionSync:

    @pytest.mark.parametrize("current,decision,target", [
        (ApplicationStatus.INTERVIEWING, Decision.OFFER, ApplicationStatus.OFFER_PENDING),
        (ApplicationStatus.INTERVIEWING, Decision.REJECT, ApplicationStatus.REJECTED),
        (ApplicationStatus.INTERVIEWING, Decision.HOLD, ApplicationStatus.ON_HOLD),
        (ApplicationStatus.ON_HOLD, Decision.ADVANCE, ApplicationStatus.INTERVIEWING),
        (ApplicationStatus.SHORTLISTED, Decision.ADVANCE, ApplicationStatus.INTERVIEWING),
    ])
    def test_legal_moves(self, current, decision, target):
        plan = plan_decision_sync(current, decision)

        assert plan.target == target
        assert plan.failure is None
        assert not plan.is_noop

    def test_already_at_target_is_noop(self):
        plan = plan_decision_sync(ApplicationStatus.INTERVIEWING, Decision.ADVANCE)

        assert plan.is_noop
        assert plan.failure is None

    def test_illegal_move_yields_sync_failure(self):
        plan = plan_decision_sync(ApplicationStatus.WITHDRAWN, Decision.OFFER)

        assert plan.target is None
        assert plan.failure is not None
        assert plan.failure.kind.value == "sync_failure"
        assert plan.failure.details["application_status"] == "withdrawn"
        assert plan.failure.details["target_status"] == "offer_pending"

    def test_offer_from_on_hold_fails(self):
        plan = plan_decision_sync(ApplicationStatus.ON_HOLD, Decision.OFFER)

        assert plan.failure is not None
