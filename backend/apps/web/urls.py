"""
Page and RSS routes, mounted at the site root.
"""

from django.urls import path

from apps.stories.feeds import StoriesFeed, TagFeed, UserStoriesFeed, CommentsFeed
from . import views

app_name = 'web'

urlpatterns = [
    path('', views.index, name='index'),
    path('newest', views.newest, name='newest'),
    path('recent', views.recent, name='recent'),
    path('top', views.top, name='top'),
    path('s/<str:short_id>', views.story, name='story_short'),
    path('s/<str:short_id>/<slug:slug>', views.story, name='story'),
    path('comments', views.comments, name='comments'),
    path('tags', views.tags, name='tags'),
    path('t/<str:tag>/rss', TagFeed(), name='tag_feed'),
    path('t/<str:tag>', views.tag, name='tag'),
    path('users', views.users, name='users'),
    path('u/<str:username>/rss', UserStoriesFeed(), name='user_feed'),
    path('u/<str:username>', views.user, name='user'),
    path('moderation/log', views.moderation_log, name='moderation_log'),
    path('search', views.search, name='search'),

    # RSS
    path('feeds/stories.rss', StoriesFeed(), name='stories_feed'),
    path('feeds/comments.rss', CommentsFeed(), name='comments_feed'),
]
