"""
Story, tag and per-user story state models.

Tables: tags, stories, taggings, saved_stories, hidden_stories
"""

from django.db import models

from apps.authentication.models import User
from apps.core.utils.text import slugify_title


class Tag(models.Model):
    """
    Category label; privileged tags can only be applied by moderators
    """
    tag = models.CharField(max_length=25, unique=True)
    description = models.CharField(max_length=255, blank=True, default='')
    category = models.CharField(max_length=50, blank=True, default='')
    privileged = models.BooleanField(default=False)
    is_media = models.BooleanField(default=False)
    inactive = models.BooleanField(default=False)
    hotness_mod = models.FloatField(default=0.0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'tags'
        ordering = ['tag']

    def __str__(self):
        return self.tag


class Story(models.Model):
    """
    A submitted link or text post
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='stories')
    short_id = models.CharField(max_length=6, unique=True)
    title = models.CharField(max_length=150)
    url = models.CharField(max_length=500, blank=True, null=True)
    normalized_url = models.CharField(max_length=500, blank=True, default='', db_index=True)
    domain = models.CharField(max_length=255, blank=True, default='', db_index=True)
    description = models.TextField(blank=True, default='')
    markdown_description = models.TextField(blank=True, default='')
    user_is_author = models.BooleanField(default=False)

    score = models.IntegerField(default=0)
    upvotes = models.PositiveIntegerField(default=0)
    downvotes = models.PositiveIntegerField(default=0)
    flags = models.PositiveIntegerField(default=0)
    comments_count = models.PositiveIntegerField(default=0)
    hotness = models.FloatField(default=0.0)

    is_expired = models.BooleanField(default=False)
    is_moderated = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False)
    merged_story = models.ForeignKey(
        'self', on_delete=models.SET_NULL, null=True, blank=True, related_name='merged_stories'
    )

    tags = models.ManyToManyField(Tag, through='Tagging', related_name='stories')

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'stories'
        indexes = [
            models.Index(fields=['hotness'], name='stories_hotness_idx'),
            models.Index(fields=['score', 'created_at'], name='stories_score_idx'),
            models.Index(fields=['user', 'created_at'], name='stories_user_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    @property
    def slug(self):
        return slugify_title(self.title)

    @property
    def is_text_post(self):
        return not self.url

    def get_absolute_url(self):
        slug = self.slug
        return f'/s/{self.short_id}/{slug}' if slug else f'/s/{self.short_id}'

    @property
    def tag_names(self):
        return [tag.tag for tag in self.tags.all()]


class Tagging(models.Model):
    story = models.ForeignKey(Story, on_delete=models.CASCADE, related_name='taggings')
    tag = models.ForeignKey(Tag, on_delete=models.CASCADE, related_name='taggings')

    class Meta:
        db_table = 'taggings'
        constraints = [
            models.UniqueConstraint(fields=['story', 'tag'], name='taggings_story_tag_uniq'),
        ]

    def __str__(self):
        return f'{self.story.short_id}:{self.tag.tag}'


class SavedStory(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='saved_stories')
    story = models.ForeignKey(Story, on_delete=models.CASCADE, related_name='saves')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'saved_stories'
        constraints = [
            models.UniqueConstraint(fields=['user', 'story'], name='saved_stories_user_story_uniq'),
        ]
        ordering = ['-created_at']


class HiddenStory(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='hidden_stories')
    story = models.ForeignKey(Story, on_delete=models.CASCADE, related_name='hides')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'hidden_stories'
        constraints = [
            models.UniqueConstraint(fields=['user', 'story'], name='hidden_stories_user_story_uniq'),
        ]
