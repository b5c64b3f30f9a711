"""
User URL configuration, mounted at /api/v1/.
"""

from django.urls import path
from .views import UserListView, UserDetailView, SettingsView, TagPreferencesView, FollowView

app_name = 'users'

urlpatterns = [
    # GET /api/v1/users
    path('users', UserListView.as_view(), name='list'),

    # GET /api/v1/users/<username>
    path('users/<str:username>', UserDetailView.as_view(), name='detail'),

    # POST/DELETE /api/v1/users/<username>/follow
    path('users/<str:username>/follow', FollowView.as_view(), name='follow'),

    # GET/PUT /api/v1/settings
    path('settings', SettingsView.as_view(), name='settings'),

    # PUT /api/v1/settings/tags
    path('settings/tags', TagPreferencesView.as_view(), name='tag_preferences'),
]
