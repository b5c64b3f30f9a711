"""
In-app notifications.

Table: user_notifications
"""

from django.db import models

from apps.authentication.models import User


class UserNotification(models.Model):
    TYPE_CHOICES = [
        ('mention', 'Mention'),
        ('reply', 'Reply'),
        ('follow', 'Follow'),
        ('vote', 'Vote'),
        ('message', 'Message'),
        ('invitation', 'Invitation'),
        ('moderation', 'Moderation'),
        ('system', 'System'),
    ]

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('normal', 'Normal'),
        ('high', 'High'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default='')
    action_url = models.CharField(max_length=500, blank=True, default='')
    metadata = models.JSONField(default=dict, blank=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='normal')
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'user_notifications'
        indexes = [
            models.Index(fields=['user', 'is_read', 'created_at'], name='notif_user_read_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.type} for {self.user_id}: {self.title}'
