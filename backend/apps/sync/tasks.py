"""
Offline sync background jobs.
"""

from celery import shared_task
import logging

from .services import offline_sync_service

logger = logging.getLogger(__name__)


@shared_task
def process_pending_sync_actions():
    """
    Replay queued offline actions for every user
    Runs every 5 minutes (configured in celery.py)
    """
    result = offline_sync_service.sync_pending_actions()
    if result['synced'] or result['failed']:
        logger.info(f'Sync run: {result["synced"]} synced, {result["failed"]} failed')
    return {'synced': result['synced'], 'failed': result['failed']}


@shared_task
def cleanup_sync_data():
    """
    Drop completed actions and old failures
    Runs daily (configured in celery.py)
    """
    deleted = offline_sync_service.cleanup_expired()
    logger.info(f'Cleaned up {deleted} sync actions')
    return deleted
