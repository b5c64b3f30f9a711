"""
Notification housekeeping.
"""

from celery import shared_task
import logging

from .services import notification_service

logger = logging.getLogger(__name__)


@shared_task
def cleanup_old_notifications(days=30):
    """
    Delete read notifications older than `days`
    Runs daily (configured in celery.py)
    """
    deleted = notification_service.cleanup_old(days)
    logger.info(f'Cleaned up {deleted} old notifications')
    return deleted
