"""Celery configuration for notification delivery."""

from kombu import Exchange, Queue

# Serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"
timezone = "UTC"
enable_utc = True

# Task execution settings
task_track_started = True
task_time_limit = 5 * 60
task_soft_time_limit = 4 * 60
task_acks_late = True

# Worker settings
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000

pipeline_exchange = Exchange("pipeline", type="direct")
task_default_queue = "default"
task_queues = (
    Queue("default", exchange=pipeline_exchange, routing_key="default"),
    Queue("notifications", exchange=pipeline_exchange, routing_key="notifications"),
)

task_routes = {
    "workers.tasks.notifications.*": {"queue": "notifications"},
}

# Delivery results are only kept for debugging
result_expires = 3600
