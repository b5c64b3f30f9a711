"""
Invitation models.
"""

import secrets
from django.db import models

from apps.authentication.models import User


def generate_invitation_code() -> str:
    return secrets.token_hex(16)


class Invitation(models.Model):
    """
    An invitation sent by a member to an email address
    """
    inviter = models.ForeignKey(User, on_delete=models.CASCADE, related_name='invitations_sent')
    email = models.EmailField(max_length=255)
    code = models.CharField(max_length=32, unique=True, default=generate_invitation_code)
    memo = models.TextField(blank=True, default='')
    used_at = models.DateTimeField(null=True, blank=True)
    new_user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'invitations'
        indexes = [
            models.Index(fields=['inviter', 'created_at'], name='invitations_inviter_idx'),
            models.Index(fields=['email'], name='invitations_email_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f'Invitation to {self.email} from {self.inviter.username}'

    @property
    def is_used(self):
        return self.used_at is not None
