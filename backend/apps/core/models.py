"""
Core models.
"""

from django.db import models


class ApiUsageLog(models.Model):
    """
    One row per authenticated API request
    """
    user_id = models.BigIntegerField(db_index=True)
    endpoint = models.CharField(max_length=255)
    method = models.CharField(max_length=10)
    status_code = models.PositiveSmallIntegerField()
    duration_ms = models.PositiveIntegerField(default=0)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'api_usage_logs'
        indexes = [
            models.Index(fields=['user_id', 'timestamp'], name='api_usage_user_ts_idx'),
        ]
        ordering = ['-timestamp']

    def __str__(self):
        return f'{self.method} {self.endpoint} ({self.status_code})'
