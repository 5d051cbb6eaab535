"""
Fire-and-forget notifications for pipeline transitions.

The engine hands each committed transition to a Celery task that delivers it
to the configured webhook. Enqueue failures are logged and swallowed: a lost
notification never undoes a committed transition.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from core.config import Settings

logger = logging.getLogger(__name__)

SEND_NOTIFICATION_TASK = "workers.tasks.notifications.send_notification"


class NotificationEvent(str, Enum):
    JOB_SUBMITTED = "job.submitted"
    JOB_APPROVED = "job.approved"
    JOB_REJECTED = "job.rejected"
    JOB_STATUS_CHANGED = "job.status_changed"
    APPLICATION_RECEIVED = "application.received"
    APPLICATION_STATUS_CHANGED = "application.status_changed"
    APPLICATION_WITHDRAWN = "application.withdrawn"
    INTERVIEW_SCHEDULED = "interview.scheduled"
    INTERVIEW_RESCHEDULED = "interview.rescheduled"
    INTERVIEW_CANCELLED = "interview.cancelled"
    INTERVIEW_RESPONDED = "interview.responded"
    INTERVIEW_STATUS_CHANGED = "interview.status_changed"
    FEEDBACK_SUBMITTED = "interview.feedback_submitted"
    DECISION_MADE = "interview.decision_made"


def _enqueue_with_celery(
    webhook_url: str,
    event_type: str,
    payload: Dict[str, Any],
    signing_secret: Optional[str] = None,
) -> None:
    from workers.celery_app import celery_app

    kwargs = {
        "webhook_url": webhook_url,
        "event_type": event_type,
        "payload": payload,
    }
    if signing_secret:
        kwargs["signing_secret"] = signing_secret
    celery_app.send_task(SEND_NOTIFICATION_TASK, kwargs=kwargs)


class Notifier:
    """Enqueues notification deliveries after successful transitions."""

    def __init__(
        self,
        enabled: bool = False,
        webhook_url: Optional[str] = None,
        sender: Optional[Callable[..., None]] = None,
        signing_secret: Optional[str] = None,
    ):
        self.enabled = enabled and bool(webhook_url)
        self.webhook_url = webhook_url
        self.signing_secret = signing_secret
        self._sender = sender or _enqueue_with_celery

    @classmethod
    def from_settings(cls, settings: Settings) -> "Notifier":
        return cls(
            enabled=settings.notifications_enabled,
            webhook_url=settings.notification_webhook_url,
            signing_secret=settings.notification_signing_secret,
        )

    def notify(self, event: NotificationEvent, payload: Dict[str, Any]) -> None:
        """
        Enqueue one notification.

        Args:
            event: Transition that happened
            payload: JSON-serialisable event data
        """
        if not self.enabled:
            logger.debug(f"Notifications disabled, dropping {event.value}")
            return
        try:
            if self.signing_secret:
                self._sender(
                    self.webhook_url, event.value, payload, signing_secret=self.signing_secret
                )
            else:
                self._sender(self.webhook_url, event.value, payload)
        except Exception as e:
            logger.error(f"Failed to enqueue notification {event.value}: {e}")
