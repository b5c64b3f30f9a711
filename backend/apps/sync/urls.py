from django.urls import path
from .views import (
    QueueActionView,
    ProcessView,
    StatusView,
    CacheDataView,
    CachedDataView,
    CachedStoriesView,
    CacheStoriesView,
    CachedCommentsView,
    CacheCommentsView,
    CleanupView,
    ResolveConflictView,
)

app_name = 'sync'

urlpatterns = [
    path('queue', QueueActionView.as_view(), name='queue'),
    path('process', ProcessView.as_view(), name='process'),
    path('status', StatusView.as_view(), name='status'),
    path('cache', CacheDataView.as_view(), name='cache'),
    path('cache/<str:key>', CachedDataView.as_view(), name='cached_data'),
    path('stories/cached', CachedStoriesView.as_view(), name='cached_stories'),
    path('stories/cache', CacheStoriesView.as_view(), name='cache_stories'),
    path('stories/<str:short_id>/comments/cached', CachedCommentsView.as_view(), name='cached_comments'),
    path('stories/<str:short_id>/comments/cache', CacheCommentsView.as_view(), name='cache_comments'),
    path('cleanup', CleanupView.as_view(), name='cleanup'),
    path('resolve-conflict', ResolveConflictView.as_view(), name='resolve_conflict'),
]
