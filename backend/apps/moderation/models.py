"""
Public moderation log.

Table: moderations
"""

from django.db import models

from apps.authentication.models import User


class Moderation(models.Model):
    """
    One moderator action on a story, comment or user
    """
    SUBJECT_CHOICES = [
        ('story', 'Story'),
        ('comment', 'Comment'),
        ('user', 'User'),
    ]

    moderator = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='moderations')
    action = models.CharField(max_length=50)
    story = models.ForeignKey(
        'stories.Story', on_delete=models.SET_NULL, null=True, blank=True, related_name='moderations'
    )
    comment = models.ForeignKey(
        'comments.Comment', on_delete=models.SET_NULL, null=True, blank=True, related_name='moderations'
    )
    target_user = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='moderations_received'
    )
    reason = models.TextField(blank=True, default='')
    is_from_suggestions = models.BooleanField(default=False)
    subject_type = models.CharField(max_length=20, choices=SUBJECT_CHOICES)
    subject_id = models.BigIntegerField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'moderations'
        indexes = [
            models.Index(fields=['subject_type', 'subject_id'], name='moderations_subject_idx'),
            models.Index(fields=['moderator', 'created_at'], name='moderations_moderator_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.action} on {self.subject_type} {self.subject_id}'
