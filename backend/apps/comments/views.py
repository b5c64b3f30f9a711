"""
Comment views.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly

from apps.core.permissions import HasScope
from apps.core.utils.params import pagination
from apps.stories.services import story_service
from .serializers import (
    CommentSerializer,
    CommentCreateSerializer,
    CommentUpdateSerializer,
    FlagSerializer,
)
from .services import comment_service


class CommentListView(APIView):
    """
    GET  /api/v1/comments          recent comments
    POST /api/v1/comments          {"story", "comment", "parent"}
    """
    permission_classes = [IsAuthenticatedOrReadOnly, HasScope]
    required_scope = {'read': 'comments:read', 'write': 'comments:write'}

    def get(self, request):
        limit, offset = pagination(request)
        comments = comment_service.recent_comments(limit, offset)
        return Response({'comments': CommentSerializer(comments, many=True).data})

    def post(self, request):
        serializer = CommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        story = story_service.get_story_by_short_id(data['story'])
        comment = comment_service.create_comment(
            request.user, story, data['comment'], parent_short_id=data.get('parent') or None
        )
        return Response({'comment': CommentSerializer(comment).data}, status=status.HTTP_201_CREATED)


class CommentDetailView(APIView):
    """
    GET    /api/v1/comments/<short_id>
    PUT    /api/v1/comments/<short_id>
    DELETE /api/v1/comments/<short_id>
    """
    permission_classes = [IsAuthenticatedOrReadOnly, HasScope]
    required_scope = {'read': 'comments:read', 'write': 'comments:write'}

    def get(self, request, short_id):
        comment = comment_service.get_by_short_id(short_id)
        return Response({'comment': CommentSerializer(comment).data})

    def put(self, request, short_id):
        comment = comment_service.get_by_short_id(short_id)
        serializer = CommentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        comment = comment_service.update_comment(comment, request.user, serializer.validated_data['comment'])
        return Response({'comment': CommentSerializer(comment).data})

    def delete(self, request, short_id):
        comment = comment_service.get_by_short_id(short_id)
        comment_service.delete_comment(comment, request.user, reason=request.data.get('reason', ''))
        return Response(status=status.HTTP_204_NO_CONTENT)


class CommentFlagView(APIView):
    """
    POST /api/v1/comments/<short_id>/flag  {"reason": "S"}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, short_id):
        comment = comment_service.get_by_short_id(short_id)
        serializer = FlagSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        flags = comment_service.flag_comment(comment, request.user, serializer.validated_data['reason'])
        return Response({'flagged': True, 'flags': flags})
