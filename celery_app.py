"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory to ensure all services are properly initialized.
"""

import logging

from celery.signals import worker_shutdown

from app_factory import create_app

logger = logging.getLogger(__name__)

# Create Flask app with all services initialized (including dependency container)
flask_app = create_app()

# Get Celery instance from Flask app
celery_app = flask_app.celery
if celery_app is None:
    raise RuntimeError("Celery is disabled or failed to initialize (CELERY_ENABLED)")

# Task modules are imported by name when the worker starts, after
# `celery_app` exists, so task decorators can import it.
celery_app.conf.imports = ("oncedrop.tasks.cleanup_task",)


@worker_shutdown.connect
def _close_adapters(**kwargs):
    """Release Redis pools and storage clients when the worker exits."""
    if flask_app.container is not None:
        failures = flask_app.container.shutdown()
        if failures:
            logger.warning("Adapters failed to close: %s", ", ".join(failures))
