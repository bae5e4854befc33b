"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory so that tasks resolve the same services as the API.

    celery -A freeshare.celery_app worker -Q cleanup_queue
    celery -A freeshare.celery_app beat
"""

from freeshare.app_factory import create_app

flask_app = create_app()

celery_app = flask_app.celery

# Task modules are imported by name when the worker starts; importing them
# here would be circular (cleanup_task -> celery_app -> cleanup_task).
celery_app.conf.imports = (
    "freeshare.tasks.cleanup_task",
)
