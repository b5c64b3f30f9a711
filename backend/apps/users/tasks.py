"""
Periodic user maintenance.
"""

from celery import shared_task
import logging

from .services import user_service

logger = logging.getLogger(__name__)


@shared_task
def recalculate_all_karma():
    """
    Rebuild every user's karma from the votes table

    Runs daily via Celery Beat.
    """
    changed = user_service.recalculate_all_karma()
    return {'changed': changed}
