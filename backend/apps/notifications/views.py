"""
Notification views.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from apps.core.utils.params import pagination
from .serializers import NotificationSerializer, MarkReadSerializer
from .services import notification_service


class NotificationListView(APIView):
    """
    GET /api/v1/notifications?unread=1
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        unread_only = request.query_params.get('unread') in ('1', 'true')
        limit, offset = pagination(request, default_limit=50)

        notifications = notification_service.list_for(request.user, unread_only, limit, offset)
        return Response({
            'notifications': NotificationSerializer(notifications, many=True).data,
            'unread_count': notification_service.unread_count(request.user),
        })


class MarkReadView(APIView):
    """
    POST /api/v1/notifications/read  {"ids": [..]} or {} for all
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated = notification_service.mark_read(request.user, serializer.validated_data.get('ids'))
        return Response({
            'updated': updated,
            'unread_count': notification_service.unread_count(request.user),
        })


class UnreadCountView(APIView):
    """
    GET /api/v1/notifications/unread-count
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'count': notification_service.unread_count(request.user)})
