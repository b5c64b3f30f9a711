from django.urls import path
from .views import CommentListView, CommentDetailView, CommentFlagView
from apps.votes.views import CommentVoteView

app_name = 'comments'

urlpatterns = [
    # GET/POST /api/v1/comments
    path('comments', CommentListView.as_view(), name='list'),

    # GET/PUT/DELETE /api/v1/comments/<short_id>
    path('comments/<str:short_id>', CommentDetailView.as_view(), name='detail'),

    # POST /api/v1/comments/<short_id>/vote
    path('comments/<str:short_id>/vote', CommentVoteView.as_view(), name='vote'),

    # POST /api/v1/comments/<short_id>/flag
    path('comments/<str:short_id>/flag', CommentFlagView.as_view(), name='flag'),
]
