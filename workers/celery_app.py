"""Celery app factory."""

from celery import Celery

from core.config import settings

celery_app = Celery(
    "pipeline",
    broker=str(settings.celery_broker_url),
    backend=str(settings.celery_result_backend),
)
celery_app.config_from_object("workers.celery_config")
celery_app.autodiscover_tasks(["workers.tasks"], related_name="notifications")
