"""
Tests for the notifier and the scoring oracle client.
"""

import asyncio
from unittest.mock import MagicMock, patch

import httpx
import pytest

from core.config import Settings
from core.integrations.notifier import (
    SEND_NOTIFICATION_TASK,
    NotificationEvent,
    Notifier,
)
from core.integrations.scoring import ScoringOracle
from core.workflow.application_status import ScoringStatus


class TestNotifier:

    def test_disabled_notifier_does_not_send(self):
        sender = MagicMock()
        notifier = Notifier(enabled=False, webhook_url="https://hooks.test", sender=sender)

        notifier.notify(NotificationEvent.JOB_SUBMITTED, {"job_id": 1})

        sender.assert_not_called()

    def test_enabled_without_url_is_disabled(self):
        assert Notifier(enabled=True, webhook_url=None).enabled is False

    def test_sends_event_value_and_payload(self):
        sender = MagicMock()
        notifier = Notifier(enabled=True, webhook_url="https://hooks.test", sender=sender)

        notifier.notify(NotificationEvent.INTERVIEW_SCHEDULED, {"interview_id": 5})

        sender.assert_called_once_with(
            "https://hooks.test", "interview.scheduled", {"interview_id": 5}
        )

    def test_enqueue_failure_is_swallowed(self, caplog):
        sender = MagicMock(side_effect=ConnectionError("broker down"))
        notifier = Notifier(enabled=True, webhook_url="https://hooks.test", sender=sender)

        notifier.notify(NotificationEvent.DECISION_MADE, {"interview_id": 5})

        assert "Failed to enqueue notification interview.decision_made" in caplog.text

    def test_default_sender_uses_celery_task(self):
        notifier = Notifier(enabled=True, webhook_url="https://hooks.test")

        with patch("workers.celery_app.celery_app.send_task") as send_task:
            notifier.notify(NotificationEvent.APPLICATION_RECEIVED, {"application_id": 3})

        send_task.assert_called_once_with(
            SEND_NOTIFICATION_TASK,
            kwargs={
                "webhook_url": "https://hooks.test",
                "event_type": "application.received",
                "payload": {"application_id": 3},
            },
        )

    def test_signing_secret_reaches_the_task(self):
        notifier = Notifier(
            enabled=True, webhook_url="https://hooks.test", signing_secret="shh"
        )

        with patch("workers.celery_app.celery_app.send_task") as send_task:
            notifier.notify(NotificationEvent.JOB_APPROVED, {"job_id": 1})

        assert send_task.call_args.kwargs["kwargs"]["signing_secret"] == "shh"

    def test_from_settings_reads_signing_secret(self):
        settings = Settings(
            NOTIFICATIONS_ENABLED=True,
            NOTIFICATION_WEBHOOK_URL="https://hooks.test",
            NOTIFICATION_SIGNING_SECRET="shh",
            JWT_SECRET_KEY="test-secret",
        )

        notifier = Notifier.from_settings(settings)

        assert notifier.enabled is True
        assert notifier.signing_secret == "shh"


def oracle_with(handler, timeout_seconds=1.0):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ScoringOracle("https://score.test/", timeout_seconds=timeout_seconds, client=client)


class TestScoringOracle:

    @pytest.mark.asyncio
    async def test_scored(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = request.read()
            return httpx.Response(200, json={"match_score": 82.5, "summary": "Strong fit"})

        status, result = await oracle_with(handler).evaluate("resume", "Engineer", "Build")

        assert status == ScoringStatus.SCORED
        assert result.match_score == 82.5
        assert result.summary == "Strong fit"
        assert seen["url"] == "https://score.test/score"
        assert b'"job_title":"Engineer"' in seen["body"].replace(b" ", b"")

    @pytest.mark.asyncio
    async def test_server_error_is_unscored(self):
        status, result = await oracle_with(lambda r: httpx.Response(503)).evaluate("r", "t", "d")

        assert status == ScoringStatus.UNSCORED
        assert result is None

    @pytest.mark.asyncio
    async def test_malformed_body_is_unscored(self):
        handler = lambda r: httpx.Response(200, json={"summary": "no score"})  # noqa: E731

        status, _ = await oracle_with(handler).evaluate("r", "t", "d")

        assert status == ScoringStatus.UNSCORED

    @pytest.mark.asyncio
    async def test_out_of_range_score_is_unscored(self):
        handler = lambda r: httpx.Response(200, json={"match_score": 140})  # noqa: E731

        status, _ = await oracle_with(handler).evaluate("r", "t", "d")

        assert status == ScoringStatus.UNSCORED

    @pytest.mark.asyncio
    async def test_transport_timeout_is_timed_out(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        status, _ = await oracle_with(handler).evaluate("r", "t", "d")

        assert status == ScoringStatus.TIMED_OUT

    @pytest.mark.asyncio
    async def test_deadline_is_enforced(self):
        oracle = ScoringOracle("https://score.test", timeout_seconds=0.01)

        async def slow_score(*args):
            await asyncio.sleep(1)

        with patch.object(oracle, "score", side_effect=slow_score):
            status, result = await oracle.evaluate("r", "t", "d")

        assert status == ScoringStatus.TIMED_OUT
        assert result is None

    def test_from_settings_without_url(self):
        settings = MagicMock(scoring_oracle_url=None)

        assert ScoringOracle.from_settings(settings) is None
