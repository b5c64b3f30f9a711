"""
RSS 2.0 feeds built on django.contrib.syndication.
"""

from django.conf import settings
from django.contrib.syndication.views import Feed
from django.http import Http404

from apps.authentication.models import User
from apps.comments.models import Comment
from .models import Story, Tag
from .services import story_service

FEED_SIZE = 50


class StoriesFeed(Feed):
    description = 'Newest stories'

    def title(self):
        return f'{settings.SITE_NAME}: newest stories'

    def link(self):
        return '/newest'

    def items(self):
        return story_service.get_stories(sort='newest', limit=FEED_SIZE)

    def item_title(self, item):
        return item.title

    def item_description(self, item):
        return item.markdown_description or item.url or ''

    def item_link(self, item):
        return item.get_absolute_url()

    def item_author_name(self, item):
        return item.user.username

    def item_pubdate(self, item):
        return item.created_at

    def item_categories(self, item):
        return item.tag_names


class TagFeed(StoriesFeed):

    def get_object(self, request, tag):
        obj = Tag.objects.filter(tag=tag.lower(), inactive=False).first()
        if obj is None:
            raise Http404('Tag not found')
        return obj

    def title(self, obj):
        return f'{settings.SITE_NAME}: {obj.tag}'

    def link(self, obj):
        return f'/t/{obj.tag}'

    def description(self, obj):
        return obj.description or f'Stories tagged {obj.tag}'

    def items(self, obj):
        return story_service.get_stories(sort='newest', limit=FEED_SIZE, tag=obj.tag)


class UserStoriesFeed(StoriesFeed):

    def get_object(self, request, username):
        user = User.objects.filter(username__iexact=username).first()
        if user is None:
            raise Http404('User not found')
        return user

    def title(self, obj):
        return f'{settings.SITE_NAME}: stories by {obj.username}'

    def link(self, obj):
        return f'/u/{obj.username}'

    def description(self, obj):
        return f'Stories submitted by {obj.username}'

    def items(self, obj):
        return story_service.get_stories(sort='newest', limit=FEED_SIZE, user=obj)


class CommentsFeed(Feed):
    description = 'Newest comments'

    def title(self):
        return f'{settings.SITE_NAME}: newest comments'

    def link(self):
        return '/comments'

    def items(self):
        return (
            Comment.objects.filter(is_deleted=False, story__is_deleted=False)
            .select_related('user', 'story').order_by('-created_at')[:FEED_SIZE]
        )

    def item_title(self, item):
        return f'Comment by {item.user.username} on {item.story.title}'

    def item_description(self, item):
        return item.markdown_comment

    def item_link(self, item):
        return item.get_absolute_url()

    def item_author_name(self, item):
        return item.user.username

    def item_pubdate(self, item):
        return item.created_at
