"""
HTTP tests for the v1 API.

Requests go through the full middleware stack with ``httpx.ASGITransport``;
the database dependency is pointed at the per-test SQLite file.
"""

from datetime import timedelta

import httpx
import pytest
import pytest_asyncio

from api.dependencies import (
    get_db,
    get_lock_manager,
    get_notifier,
    get_policy,
    get_scoring_oracle,
)
from api.main import app
from api.services import applications as application_service
from api.services import feedback as feedback_service
from core.policy import CompanyPolicy
from core.security import create_access_token
from core.workflow.feedback import Recommendation

PREFIX = "/api/v1"

def auth(actor):
    token = create_access_token(
        actor.actor_id, actor.role, staff_verified=actor.verified_staff
    )
    return {"Authorization": f"Bearer {token}"}

@pytest_asyncio.fixture
async def client(session_factory, locks, notifier):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_manager] = lambda: locks
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_scoring_oracle] = lambda: None
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

async def create_open_job(client, hr, **overrides):
    payload = {
        "title": "Backend Engineer",
        "description": "APIs and queues",
        "location": "Remote",
        "department": "Engineering",
        **overrides,
    }
    response = await client.post(f"{PREFIX}/jobs", json=payload, headers=auth(hr))
    job_id = response.json()["data"]["id"]
    await client.post(f"{PREFIX}/jobs/{job_id}/submit", headers=auth(hr))
    response = await client.post(f"{PREFIX}/jobs/{job_id}/approve", headers=auth(hr))
    return response.json()["data"]

class TestHealth:

    async def test_liveness(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.headers["x-request-id"]

class TestEnvelope:

    async def test_missing_token(self, client):
        response = await client.get(f"{PREFIX}/jobs/1")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "data": None,
            "error": {"kind": "unauthenticated", "message": "Authentication required"},
            "warnings": [],
        }

    async def test_invalid_token(self, client):
        response = await client.get(
            f"{PREFIX}/jobs/1", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "unauthenticated"

    async def test_create_job(self, client, hr):
        response = await client.post(
            f"{PREFIX}/jobs", json={"title": "Site Reliability Engineer"}, headers=auth(hr)
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["error"] is None
        assert body["warnings"] == []
        assert body["data"]["status"] == "draft"
        assert body["data"]["created_by"] == hr.actor_id
        assert body["data"]["version"] == 1

    async def test_forbidden(self, client, candidate):
        response = await client.post(
            f"{PREFIX}/jobs", json={"title": "Nope"}, headers=auth(candidate)
        )

        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "forbidden"

    async def test_not_found(self, client, hr):
        response = await client.get(f"{PREFIX}/jobs/999", headers=auth(hr))

        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "not_found"

    async def test_request_validation(self, client, hr):
        response = await client.post(f"{PREFIX}/jobs", json={"title": ""}, headers=auth(hr))

        assert response.status_code == 422
        body = response.json()
        assert body["error"]["kind"] == "validation_error"
        assert body["error"]["details"]["errors"]

class TestJobEndpoints:

    async def test_lifecycle(self, client, hr):
        job = await create_open_job(client, hr)

        assert job["status"] == "open"
        assert job["approved_by"] == hr.actor_id

        response = await client.post(f"{PREFIX}/jobs/{job['id']}/pause", headers=auth(hr))
        assert response.json()["data"]["status"] == "paused"

    async def test_illegal_action(self, client, hr):
        response = await client.post(
            f"{PREFIX}/jobs", json={"title": "Draft"}, headers=auth(hr)
        )
        job_id = response.json()["data"]["id"]

        response = await client.post(f"{PREFIX}/jobs/{job_id}/fill", headers=auth(hr))

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["kind"] == "illegal_transition"
        assert error["details"] == {"current": "draft", "requested": "fill"}

    async def test_unknown_action(self, client, hr):
        response = await client.post(f"{PREFIX}/jobs/1/explode", headers=auth(hr))

        assert response.status_code == 422

    async def test_reject_needs_reason(self, client, hr):
        response = await client.post(
            f"{PREFIX}/jobs",
            json={"title": "Ops", "description": "d", "location": "l", "department": "x"},
            headers=auth(hr),
        )
        job_id = response.json()["data"]["id"]
        await client.post(f"{PREFIX}/jobs/{job_id}/submit", headers=auth(hr))

        missing = await client.post(f"{PREFIX}/jobs/{job_id}/reject", json={}, headers=auth(hr))
        rejected = await client.post(
            f"{PREFIX}/jobs/{job_id}/reject", json={"reason": "No budget"}, headers=auth(hr)
        )

        assert missing.status_code == 422
        assert rejected.status_code == 200
        assert rejected.json()["data"]["status"] == "cancelled"
        assert rejected.json()["data"]["rejection_reason"] == "No budget"

class TestApplicationEndpoints:

    async def test_apply_and_duplicate(self, client, hr, candidate):
        job = await create_open_job(client, hr)

        first = await client.post(
            f"{PREFIX}/applications", json={"job_id": job["id"]}, headers=auth(candidate)
        )
        second = await client.post(
            f"{PREFIX}/applications", json={"job_id": job["id"]}, headers=auth(candidate)
        )

        assert first.status_code == 201
        assert first.json()["data"]["status"] == "pending"
        assert [h["status"] for h in first.json()["data"]["status_history"]] == ["pending"]
        assert second.status_code == 409
        assert second.json()["error"]["kind"] == "duplicate_application"

    async def test_internal_job(self, client, hr, candidate):
        job = await create_open_job(client, hr, visibility="internal")

        response = await client.post(
            f"{PREFIX}/applications", json={"job_id": job["id"]}, headers=auth(candidate)
        )

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "job_not_accepting_applications"

    async def test_status_update_and_history(self, client, hr, candidate):
        job = await create_open_job(client, hr)
        response = await client.post(
            f"{PREFIX}/applications", json={"job_id": job["id"]}, headers=auth(candidate)
        )
        application_id = response.json()["data"]["id"]

        response = await client.put(
            f"{PREFIX}/applications/{application_id}/status",
            json={"status": "reviewing", "note": "Looks good"},
            headers=auth(hr),
        )
        assert response.status_code == 200

        response = await client.get(
            f"{PREFIX}/applications/{application_id}/history", headers=auth(candidate)
        )
        assert [h["status"] for h in response.json()["data"]] == ["pending", "reviewing"]

    async def test_withdraw(self, client, hr, candidate):
        job = await create_open_job(client, hr)
        response = await client.post(
            f"{PREFIX}/applications", json={"job_id": job["id"]}, headers=auth(candidate)
        )
        application_id = response.json()["data"]["id"]

        first = await client.put(
            f"{PREFIX}/applications/{application_id}/withdraw",
            json={"reason": "Relocating"},
            headers=auth(candidate),
        )
        second = await client.put(
            f"{PREFIX}/applications/{application_id}/withdraw", headers=auth(candidate)
        )

        assert first.json()["data"]["status"] == "withdrawn"
        assert second.status_code == 409
        assert second.json()["error"]["kind"] == "illegal_transition"

    async def test_withdrawal_disabled(self, client, hr, candidate):
        job = await create_open_job(client, hr)
        response = await client.post(
            f"{PREFIX}/applications", json={"job_id": job["id"]}, headers=auth(candidate)
        )
        application_id = response.json()["data"]["id"]
        app.dependency_overrides[get_policy] = lambda: CompanyPolicy(
            enable_application_withdrawal=False
        )

        response = await client.put(
            f"{PREFIX}/applications/{application_id}/withdraw", headers=auth(candidate)
        )

        assert response.status_code == 403

    async def test_override_is_admin_only(self, client, hr, admin, candidate):
        job = await create_open_job(client, hr)
        response = await client.post(
            f"{PREFIX}/applications", json={"job_id": job["id"]}, headers=auth(candidate)
        )
        application_id = response.json()["data"]["id"]
        payload = {"status": "accepted", "note": "Fast-tracked by the CEO"}

        by_hr = await client.put(
            f"{PREFIX}/applications/{application_id}/override", json=payload, headers=auth(hr)
        )
        by_admin = await client.put(
            f"{PREFIX}/applications/{application_id}/override", json=payload, headers=auth(admin)
        )

        assert by_hr.status_code == 403
        assert by_admin.status_code == 200
        history = by_admin.json()["data"]["status_history"]
        assert history[-1]["note"] == "[override] Fast-tracked by the CEO"


class TestInterviewEndpoints:

    async def test_schedule_and_conflict(
        self, client, hr, session, application, other_candidate, open_job, monday_10am
    ):
        other = await application_service.apply_to_job(session, other_candidate, open_job.id)
        body = {
            "application_id": application.id,
            "interviewers": [{"interviewer_id": 10, "role_in_panel": "lead"}],
            "scheduled_at": monday_10am.isoformat(),
            "duration_minutes": 60,
        }

        first = await client.post(f"{PREFIX}/interviews", json=body, headers=auth(hr))
        body["application_id"] = other.id
        body["scheduled_at"] = (monday_10am + timedelta(minutes=30)).isoformat()
        second = await client.post(f"{PREFIX}/interviews", json=body, headers=auth(hr))

        assert first.status_code == 201
        data = first.json()["data"]
        assert data["status"] == "scheduled"
        assert data["participants"] == [
            {"interviewer_id": 10, "role_in_panel": "lead", "confirmed": False}
        ]
        assert second.status_code == 409
        error = second.json()["error"]
        assert error["kind"] == "scheduling_conflict"
        assert error["details"] == {
            "interviewer_id": 10,
            "conflicting_interview_id": data["id"],
        }

    async def test_default_duration(self, client, hr, application, monday_10am):
        response = await client.post(
            f"{PREFIX}/interviews",
            json={
                "application_id": application.id,
                "interviewers": [{"interviewer_id": 10}],
                "scheduled_at": monday_10am.isoformat(),
            },
            headers=auth(hr),
        )

        assert response.status_code == 201
        assert response.json()["data"]["duration_minutes"] == 60

    async def test_invalid_response(self, client, candidate, interview):
        response = await client.put(
            f"{PREFIX}/interviews/{interview.id}/respond",
            json={"response": "maybe"},
            headers=auth(candidate),
        )

        assert response.status_code == 422
        assert response.json()["error"]["kind"] == "invalid_response"

    async def test_candidate_does_not_see_feedback(
        self, client, session, candidate, hr, interviewer_a, interview
    ):
        await feedback_service.submit_feedback(
            session, interviewer_a, interview.id, Recommendation.HIRE,
            private_notes="Internal only",
        )

        as_candidate = await client.get(
            f"{PREFIX}/interviews/{interview.id}", headers=auth(candidate)
        )
        as_manager = await client.get(
            f"{PREFIX}/interviews/{interview.id}", headers=auth(interviewer_a)
        )
        as_hr = await client.get(f"{PREFIX}/interviews/{interview.id}", headers=auth(hr))

        assert as_candidate.json()["data"]["feedback"] == []
        assert as_manager.json()["data"]["feedback"][0]["private_notes"] is None
        assert as_hr.json()["data"]["feedback"][0]["private_notes"] == "Internal only"

    async def test_my_schedule(self, client, interviewer_a, interview):
        response = await client.get(
            f"{PREFIX}/interviews/my-schedule", headers=auth(interviewer_a)
        )

        assert response.status_code == 200
        assert [i["id"] for i in response.json()["data"]] == [interview.id]

    async def test_cancel(self, client, hr, interview):
        response = await client.request(
            "DELETE",
            f"{PREFIX}/interviews/{interview.id}",
            json={"reason": "Role filled"},
            headers=auth(hr),
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"
        assert response.json()["data"]["cancellation_reason"] == "Role filled"

    async def test_decision_returns_sync_warning(
        self, client, session, hiring_manager, candidate, policy, interviewer_a, interview
    ):
        await feedback_service.submit_feedback(
            session, interviewer_a, interview.id, Recommendation.HIRE
        )
        await application_service.withdraw_application(
            session, candidate, interview.application_id, policy
        )

        response = await client.post(
            f"{PREFIX}/interviews/{interview.id}/decision",
            json={"decision": "offer"},
            headers=auth(hiring_manager),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["interview"]["decision"] == "offer"
        assert body["data"]["application"]["status"] == "withdrawn"
        assert body["warnings"][0]["kind"] == "sync_failure"

    async def test_decision_without_feedback(self, client, hiring_manager, interview):
        response = await client.post(
            f"{PREFIX}/interviews/{interview.id}/decision",
            json={"decision": "reject"},
            headers=auth(hiring_manager),
        )

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "illegal_transition"

@pytest.mark.parametrize("path", ["/health", f"{PREFIX}/jobs/1"])
async def test_request_id_is_echoed(client, path):
    response = await client.get(path, headers={"x-request-id": "trace-1"})

    assert response.headers["x-request-id"] == "trace-1"
