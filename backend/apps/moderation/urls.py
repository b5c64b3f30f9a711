from django.urls import path
from .views import (
    FlaggedContentView,
    ModerationLogView,
    ModerationStatsView,
    ModerateStoryView,
    MergeStoryView,
    ModerateCommentView,
    BanUserView,
    UnbanUserView,
)

app_name = 'moderation'

urlpatterns = [
    path('flagged', FlaggedContentView.as_view(), name='flagged'),
    path('log', ModerationLogView.as_view(), name='log'),
    path('stats', ModerationStatsView.as_view(), name='stats'),
    path('stories/<str:short_id>', ModerateStoryView.as_view(), name='story'),
    path('stories/<str:short_id>/merge', MergeStoryView.as_view(), name='merge'),
    path('comments/<str:short_id>', ModerateCommentView.as_view(), name='comment'),
    path('users/<str:username>/ban', BanUserView.as_view(), name='ban'),
    path('users/<str:username>/unban', UnbanUserView.as_view(), name='unban'),
]
