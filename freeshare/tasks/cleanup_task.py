"""
Cleanup Task

Celery beat task for the periodic retention sweep.
Thin wrapper that delegates to the RetentionSweeper application service.
"""

import logging

from freeshare.celery_app import celery_app
from freeshare.config.celery_config import SWEEP_TASK_NAME

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name=SWEEP_TASK_NAME)
def sweep_expired_shares(self):
    """
    Purge every share whose expiry has passed.

    Runs on the cleanup queue at SWEEP_INTERVAL_SECONDS. The sweeper is
    resolved from the app's DependencyContainer, never built here.

    Returns:
        dict: {"purged": int, "errors": [str, ...]}. The task never raises;
        a failure to even start the sweep is reported in errors.
    """
    logger.info("Starting retention sweep")

    try:
        from freeshare.application.retention_sweeper import RetentionSweeper
        from freeshare.celery_app import flask_app

        sweeper = flask_app.container.resolve(RetentionSweeper)
        report = sweeper.sweep()

        if report.errors:
            logger.warning(f"Retention sweep errors: {report.errors}")

        return report.to_dict()

    except Exception as e:
        error_msg = f"Retention sweep task failed: {e}"
        logger.error(error_msg, exc_info=True)
        return {"purged": 0, "errors": [error_msg]}
