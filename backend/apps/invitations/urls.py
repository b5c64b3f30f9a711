from django.urls import path
from .views import InvitationListView, InvitationTreeView, InvitationCodeView

app_name = 'invitations'

urlpatterns = [
    # GET/POST /api/v1/invitations
    path('invitations', InvitationListView.as_view(), name='list'),

    # GET /api/v1/invitations/tree
    path('invitations/tree', InvitationTreeView.as_view(), name='tree'),

    # GET /api/v1/invitations/<code>
    path('invitations/<str:code>', InvitationCodeView.as_view(), name='validate'),
]
