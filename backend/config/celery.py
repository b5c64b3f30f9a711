"""
Celery configuration for linkboard.

Periodic maintenance jobs: token cleanup, karma recalculation,
notification pruning and offline sync processing.
"""

import os
from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('linkboard')

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

app.conf.beat_schedule = {
    'cleanup-expired-tokens-daily': {
        'task': 'apps.authentication.tasks.cleanup_expired_tokens',
        'schedule': crontab(hour=2, minute=0),
    },
    'recalculate-karma-daily': {
        'task': 'apps.users.tasks.recalculate_all_karma',
        'schedule': crontab(hour=3, minute=0),
    },
    'cleanup-old-notifications-daily': {
        'task': 'apps.notifications.tasks.cleanup_old_notifications',
        'schedule': crontab(hour=3, minute=30),
    },
    'process-pending-sync-actions': {
        'task': 'apps.sync.tasks.process_pending_sync_actions',
        'schedule': 300.0,  # Every 5 minutes
    },
    'cleanup-sync-data-daily': {
        'task': 'apps.sync.tasks.cleanup_sync_data',
        'schedule': crontab(hour=4, minute=0),
    },
}

app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
)
