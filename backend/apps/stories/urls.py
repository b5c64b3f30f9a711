"""
Story and tag URL configuration, mounted at /api/v1/.
"""

from django.urls import path
from .views import (
    StoryListView,
    StoryDetailView,
    StorySaveView,
    StoryHideView,
    SavedStoriesView,
    TagListView,
    TagSuggestView,
)
from apps.votes.views import StoryVoteView

app_name = 'stories'

urlpatterns = [
    # GET/POST /api/v1/stories
    path('stories', StoryListView.as_view(), name='list'),

    # GET /api/v1/stories/saved
    path('stories/saved', SavedStoriesView.as_view(), name='saved'),

    # GET/PUT/DELETE /api/v1/stories/<short_id>
    path('stories/<str:short_id>', StoryDetailView.as_view(), name='detail'),

    # POST /api/v1/stories/<short_id>/vote
    path('stories/<str:short_id>/vote', StoryVoteView.as_view(), name='vote'),

    # POST/DELETE /api/v1/stories/<short_id>/save
    path('stories/<str:short_id>/save', StorySaveView.as_view(), name='save'),

    # POST/DELETE /api/v1/stories/<short_id>/hide
    path('stories/<str:short_id>/hide', StoryHideView.as_view(), name='hide'),

    # GET/POST /api/v1/tags
    path('tags', TagListView.as_view(), name='tags'),

    # GET /api/v1/tags/suggest
    path('tags/suggest', TagSuggestView.as_view(), name='tag_suggest'),
]
