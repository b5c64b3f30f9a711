from django.urls import path
from .views import NotificationListView, MarkReadView, UnreadCountView

app_name = 'notifications'

urlpatterns = [
    # GET /api/v1/notifications?unread=1
    path('notifications', NotificationListView.as_view(), name='list'),

    # POST /api/v1/notifications/read
    path('notifications/read', MarkReadView.as_view(), name='read'),

    # GET /api/v1/notifications/unread-count
    path('notifications/unread-count', UnreadCountView.as_view(), name='unread_count'),
]
