"""Notification delivery tasks."""

import hashlib
import hmac
import json
import logging
from typing import Any, Dict, Optional

import httpx
from celery import Task

from workers.celery_app import celery_app

logger = logging.getLogger(__name__)

MAX_RETRIES = 5


def sign_payload(body: bytes, secret: str) -> str:
    """HMAC-SHA256 signature sent in ``X-Webhook-Signature``."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


@celery_app.task(name="workers.tasks.notifications.send_notification", bind=True)
def send_notification(
    self: Task,
    webhook_url: str,
    event_type: str,
    payload: Dict[str, Any],
    signing_secret: Optional[str] = None,
) -> dict:
    """Deliver one pipeline event to the notification webhook.

    Args:
        webhook_url: URL to POST the event to
        event_type: Event name, e.g. ``interview.scheduled``
        payload: Event data
        signing_secret: Optional secret used to sign the body

    Returns:
        Dictionary with delivery status
    """
    body = json.dumps({"event": event_type, "data": payload}, default=str).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "X-Webhook-Event": event_type,
    }
    if signing_secret:
        headers["X-Webhook-Signature"] = sign_payload(body, signing_secret)

    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.post(webhook_url, content=body, headers=headers)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(
            f"Notification {event_type} failed (attempt {self.request.retries + 1}): {e}"
        )
        # Exponential backoff: 1, 2, 4, 8, 16 minutes
        raise self.retry(
            exc=e,
            countdown=2 ** self.request.retries * 60,
            max_retries=MAX_RETRIES,
        )

    logger.info(f"Delivered notification {event_type} ({response.status_code})")
    return {
        "status": "delivered",
        "status_code": response.status_code,
        "event_type": event_type,
    }
