"""
Follow relationships between users.

Table: user_follows
"""

from django.db import models

from apps.authentication.models import User


class UserFollow(models.Model):
    follower = models.ForeignKey(User, on_delete=models.CASCADE, related_name='following')
    followed = models.ForeignKey(User, on_delete=models.CASCADE, related_name='followers')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'user_follows'
        constraints = [
            models.UniqueConstraint(fields=['follower', 'followed'], name='user_follows_pair_uniq'),
        ]

    def __str__(self):
        return f'{self.follower_id} -> {self.followed_id}'
