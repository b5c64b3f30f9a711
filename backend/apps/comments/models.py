"""
Comment model.

Table: comments
"""

from django.db import models

from apps.authentication.models import User
from apps.stories.models import Story


class Comment(models.Model):
    """
    Threaded comment on a story

    thread_id is the short_id of the top-level comment of the thread.
    """
    story = models.ForeignKey(Story, on_delete=models.CASCADE, related_name='comments')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='comments')
    parent_comment = models.ForeignKey(
        'self', on_delete=models.CASCADE, null=True, blank=True, related_name='replies'
    )
    thread_id = models.CharField(max_length=10, blank=True, default='', db_index=True)
    short_id = models.CharField(max_length=10, unique=True)

    comment = models.TextField()
    markdown_comment = models.TextField(blank=True, default='')

    score = models.IntegerField(default=0)
    upvotes = models.PositiveIntegerField(default=0)
    downvotes = models.PositiveIntegerField(default=0)
    flags = models.PositiveIntegerField(default=0)
    # Moderator flag/unflag/approve adjustments on top of the flag votes
    mod_flags = models.IntegerField(default=0)
    confidence = models.FloatField(default=0.0)

    is_deleted = models.BooleanField(default=False)
    is_moderated = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'comments'
        indexes = [
            models.Index(fields=['story', 'confidence'], name='comments_story_conf_idx'),
            models.Index(fields=['user', 'created_at'], name='comments_user_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f'Comment {self.short_id} on {self.story_id}'

    def get_absolute_url(self):
        return f'{self.story.get_absolute_url()}#c_{self.short_id}'
