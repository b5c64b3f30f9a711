"""
Vote model.

Table: votes

A story vote has no comment; a comment vote carries both its story and
comment. A row with value 0 and a reason is a flag without a score vote.
"""

from django.db import models

from apps.authentication.models import User
from apps.stories.models import Story
from apps.comments.models import Comment


class Vote(models.Model):
    REASONS = {
        'O': 'Off-topic',
        'I': 'Incorrect',
        'M': 'Me-too',
        'T': 'Troll',
        'S': 'Spam',
        'U': 'Unkind',
        'A': 'Already posted',
    }

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='votes')
    story = models.ForeignKey(Story, on_delete=models.CASCADE, related_name='votes')
    comment = models.ForeignKey(Comment, on_delete=models.CASCADE, null=True, blank=True, related_name='votes')
    vote = models.SmallIntegerField()
    reason = models.CharField(max_length=1, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'votes'
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'story'],
                condition=models.Q(comment__isnull=True),
                name='votes_user_story_uniq',
            ),
            models.UniqueConstraint(
                fields=['user', 'comment'],
                condition=models.Q(comment__isnull=False),
                name='votes_user_comment_uniq',
            ),
        ]
        indexes = [
            models.Index(fields=['story', 'comment'], name='votes_target_idx'),
        ]

    def __str__(self):
        target = f'comment {self.comment_id}' if self.comment_id else f'story {self.story_id}'
        return f'{self.user_id} {self.vote:+d} on {target}'
