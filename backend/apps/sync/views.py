"""
Offline sync views, all under /api/v1/sync/.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated

from apps.core.exceptions import NotFound
from apps.core.permissions import IsModerator
from apps.core.utils.params import int_param
from .serializers import QueueActionSerializer, CacheDataSerializer, ResolveConflictSerializer
from .services import offline_sync_service


class QueueActionView(APIView):
    """
    POST /api/v1/sync/queue
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = QueueActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        action = offline_sync_service.queue_action(
            request.user, data['type'], data['data'], online=data['online']
        )
        return Response({'action': action}, status=status.HTTP_201_CREATED)


class ProcessView(APIView):
    """
    POST /api/v1/sync/process
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        return Response(offline_sync_service.sync_pending_actions(request.user))


class StatusView(APIView):
    """
    GET /api/v1/sync/status
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(offline_sync_service.status(request.user))


class CacheDataView(APIView):
    """
    POST /api/v1/sync/cache
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = CacheDataSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = offline_sync_service.cache_data(request.user, data['key'], data['data'], ttl=data['ttl'])
        return Response(result, status=status.HTTP_201_CREATED)


class CachedDataView(APIView):
    """
    GET /api/v1/sync/cache/<key>
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, key):
        data = offline_sync_service.get_cached_data(request.user, key)
        if data is None:
            raise NotFound('No cached data for this key')
        return Response({'key': key, 'data': data})


class CachedStoriesView(APIView):
    """
    GET /api/v1/sync/stories/cached
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        stories = offline_sync_service.get_cached_stories(int_param(request, 'limit', 50, minimum=1, maximum=200))
        return Response({'cached': stories is not None, 'stories': stories or []})


class CacheStoriesView(APIView):
    """
    POST /api/v1/sync/stories/cache

    Snapshot the current front page.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        from apps.stories.services import story_service

        stories = story_service.get_stories(
            sort='hot', limit=int_param(request, 'limit', 50, minimum=1, maximum=200)
        )
        return Response({'cached': offline_sync_service.cache_stories(stories)})


class CachedCommentsView(APIView):
    """
    GET /api/v1/sync/stories/<short_id>/comments/cached
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, short_id):
        from apps.stories.services import story_service

        story = story_service.get_story_by_short_id(short_id)
        comments = offline_sync_service.get_cached_comments(story)
        return Response({'story': story.short_id, 'cached': comments is not None, 'comments': comments or []})


class CacheCommentsView(APIView):
    """
    POST /api/v1/sync/stories/<short_id>/comments/cache
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, short_id):
        from apps.comments.services import comment_service
        from apps.stories.services import story_service

        story = story_service.get_story_by_short_id(short_id)
        comments = comment_service.get_comments_for_story(story)
        return Response({'story': story.short_id, 'cached': offline_sync_service.cache_comments(story, comments)})


class CleanupView(APIView):
    """
    POST /api/v1/sync/cleanup
    """
    permission_classes = [IsAuthenticated, IsModerator]

    def post(self, request):
        return Response({'deleted': offline_sync_service.cleanup_expired()})


class ResolveConflictView(APIView):
    """
    POST /api/v1/sync/resolve-conflict
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ResolveConflictSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        resolved = offline_sync_service.resolve_conflict(data['local'], data['server'], data['strategy'])
        return Response({'strategy': data['strategy'], 'resolved': resolved})
