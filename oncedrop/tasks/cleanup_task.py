"""
Cleanup Task

Celery beat task for periodic removal of unreachable blobs.
Thin wrapper that delegates to HousekeepingService.
"""

import logging

from celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="oncedrop.cleanup_expired_transfers")
def cleanup_expired_transfers(self):
    """
    Periodic housekeeping sweep.

    Resolves HousekeepingService from the DependencyContainer and runs one
    reap. Errors on individual items are collected in the stats; only a
    missing container fails the task.

    Returns:
        dict: Stats with objects_purged, orphans_removed and errors
    """
    from celery_app import flask_app
    from oncedrop.application.housekeeping_service import HousekeepingService

    container = flask_app.container
    if container is None:
        raise RuntimeError("Application services not initialized")

    logger.info("Starting housekeeping task")
    stats = container.resolve(HousekeepingService).reap()
    if stats["errors"]:
        logger.warning(f"Housekeeping finished with {len(stats['errors'])} errors")
    return stats
