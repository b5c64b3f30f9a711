from django.urls import path
from .views import (
    MessageListView,
    MessageDetailView,
    MessageReplyView,
    UnreadCountView,
    MessageSearchView,
    ConversationView,
)

app_name = 'messaging'

urlpatterns = [
    # GET/POST /api/v1/messages
    path('messages', MessageListView.as_view(), name='list'),

    # GET /api/v1/messages/unread-count
    path('messages/unread-count', UnreadCountView.as_view(), name='unread_count'),

    # GET /api/v1/messages/search?q=
    path('messages/search', MessageSearchView.as_view(), name='search'),

    # GET /api/v1/messages/with/<username>
    path('messages/with/<str:username>', ConversationView.as_view(), name='conversation'),

    # GET/DELETE /api/v1/messages/<short_id>
    path('messages/<str:short_id>', MessageDetailView.as_view(), name='detail'),

    # POST /api/v1/messages/<short_id>/replies
    path('messages/<str:short_id>/replies', MessageReplyView.as_view(), name='replies'),
]
