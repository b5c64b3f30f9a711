"""
Authentication background tasks.
"""

from celery import shared_task
from django.db.models import Q
from django.utils import timezone
from .models import RefreshToken
import logging

logger = logging.getLogger(__name__)


@shared_task(name='apps.authentication.tasks.cleanup_expired_tokens')
def cleanup_expired_tokens():
    """
    Delete expired and revoked refresh tokens
    Runs daily at 2 AM (configured in celery.py)
    """
    deleted_count, _ = RefreshToken.objects.filter(
        Q(expires_at__lt=timezone.now()) | Q(revoked_at__isnull=False)
    ).delete()

    logger.info(f'Cleaned up {deleted_count} expired refresh tokens')
    return f'Deleted {deleted_count} expired tokens'
