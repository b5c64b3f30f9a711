"""
Actions queued by clients while offline, replayed when they reconnect.

Table: pending_sync_actions
"""

import secrets

from django.db import models

from apps.authentication.models import User


def generate_action_id():
    return f'action_{secrets.token_hex(8)}'


class PendingSyncAction(models.Model):
    TYPE_CHOICES = [
        ('create_comment', 'Create comment'),
        ('vote_story', 'Vote on story'),
        ('vote_comment', 'Vote on comment'),
        ('flag_comment', 'Flag comment'),
        ('create_story', 'Create story'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
    ]

    action_id = models.CharField(max_length=32, unique=True, default=generate_action_id)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sync_actions')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    data = models.JSONField(default=dict)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    attempts = models.PositiveSmallIntegerField(default=0)
    last_error = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pending_sync_actions'
        indexes = [
            models.Index(fields=['status', 'created_at'], name='sync_status_idx'),
            models.Index(fields=['user', 'status'], name='sync_user_status_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f'{self.action_id} ({self.type}, {self.status})'
