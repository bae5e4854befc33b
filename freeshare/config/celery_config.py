"""
Celery Configuration

Configures Celery with Flask integration, Redis broker, and the periodic
retention sweep.
"""

import os

from celery import Celery
from kombu import Queue

SWEEP_TASK_NAME = "freeshare.tasks.sweep_expired_shares"


class CeleryConfig:
    """Celery configuration settings."""

    # Broker settings
    broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

    # Task settings
    task_serializer = "json"
    accept_content = ["json"]
    result_serializer = "json"
    timezone = "UTC"
    enable_utc = True

    # Worker settings
    worker_prefetch_multiplier = 1
    task_acks_late = True
    worker_max_tasks_per_child = 50

    # Task routing
    task_routes = {
        SWEEP_TASK_NAME: {"queue": "cleanup_queue"},
    }

    # Queue definitions
    task_default_queue = "default"
    task_queues = (
        Queue("default", routing_key="default"),
        Queue("cleanup_queue", routing_key="cleanup"),
    )

    # A sweep touches every expired share; keep it well under the beat interval
    task_soft_time_limit = int(os.getenv("CELERY_TASK_SOFT_TIME_LIMIT", 240))
    task_time_limit = int(os.getenv("CELERY_TASK_TIME_LIMIT", 280))

    # Result backend settings
    result_expires = 3600  # 1 hour

    worker_concurrency = int(os.getenv("CELERY_WORKER_CONCURRENCY", 1))


def build_beat_schedule(sweep_interval_seconds: float) -> dict:
    """Beat schedule for periodic tasks."""
    return {
        "sweep-expired-shares": {
            "task": SWEEP_TASK_NAME,
            "schedule": float(sweep_interval_seconds),
        },
    }


def make_celery(app, sweep_interval_seconds: float = 300):
    """
    Create Celery instance with Flask app context.

    Args:
        app: Flask application instance
        sweep_interval_seconds: Period of the retention sweep (ShareConfig)

    Returns:
        Configured Celery instance
    """
    celery = Celery(
        app.import_name,
        backend=CeleryConfig.result_backend,
        broker=CeleryConfig.broker_url,
    )

    celery.config_from_object(CeleryConfig)
    celery.conf.beat_schedule = build_beat_schedule(sweep_interval_seconds)

    class ContextTask(celery.Task):
        """Make celery tasks work with Flask app context."""

        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = ContextTask
    return celery
