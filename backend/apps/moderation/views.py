"""
Moderation views.

Everything except the public log requires a moderator or admin.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny

from apps.comments.serializers import CommentSerializer
from apps.comments.services import comment_service
from apps.core.permissions import IsModerator
from apps.core.utils.params import pagination
from apps.stories.serializers import StorySerializer
from apps.stories.services import story_service
from apps.users.services import user_service
from .serializers import (
    ModerationSerializer,
    ModerateSerializer,
    MergeSerializer,
    BanSerializer,
    UnbanSerializer,
)
from .services import moderation_service


class FlaggedContentView(APIView):
    """
    GET /api/v1/moderation/flagged
    """
    permission_classes = [IsModerator]

    def get(self, request):
        limit, _ = pagination(request, default_limit=50)
        flagged = moderation_service.flagged_content(limit)
        return Response({
            'stories': StorySerializer(flagged['stories'], many=True).data,
            'comments': CommentSerializer(flagged['comments'], many=True).data,
        })


class ModerationLogView(APIView):
    """
    GET /api/v1/moderation/log?moderator=&subject_type=
    """
    permission_classes = [AllowAny]

    def get(self, request):
        limit, offset = pagination(request, default_limit=50)
        moderator = None
        if request.query_params.get('moderator'):
            moderator = user_service.get_by_username(request.query_params['moderator'])

        entries = moderation_service.moderation_log(
            limit, offset, moderator=moderator,
            subject_type=request.query_params.get('subject_type') or None,
        )
        return Response({'log': ModerationSerializer(entries, many=True).data})


class ModerationStatsView(APIView):
    """
    GET /api/v1/moderation/stats
    """
    permission_classes = [IsModerator]

    def get(self, request):
        return Response(moderation_service.stats())


class ModerateStoryView(APIView):
    """
    POST /api/v1/moderation/stories/<short_id>  {"action", "reason"}
    """
    permission_classes = [IsModerator]

    def post(self, request, short_id):
        story = story_service.get_story_by_short_id(short_id, include_deleted=True)
        serializer = ModerateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        story = moderation_service.moderate_story(
            story, request.user, serializer.validated_data['action'], serializer.validated_data['reason']
        )
        return Response({'story': StorySerializer(story).data})


class MergeStoryView(APIView):
    """
    POST /api/v1/moderation/stories/<short_id>/merge  {"target": "<short_id>"}
    """
    permission_classes = [IsModerator]

    def post(self, request, short_id):
        serializer = MergeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        source = story_service.get_story_by_short_id(short_id)
        target = story_service.get_story_by_short_id(serializer.validated_data['target'])
        moderation_service.merge_stories(source, target, request.user, serializer.validated_data['reason'])
        return Response({'merged': source.short_id, 'into': target.short_id})


class ModerateCommentView(APIView):
    """
    POST /api/v1/moderation/comments/<short_id>  {"action", "reason"}
    """
    permission_classes = [IsModerator]

    def post(self, request, short_id):
        comment = comment_service.get_by_short_id(short_id)
        serializer = ModerateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        comment = moderation_service.moderate_comment(
            comment, request.user, serializer.validated_data['action'], serializer.validated_data['reason']
        )
        return Response({'comment': CommentSerializer(comment).data})


class BanUserView(APIView):
    """
    POST /api/v1/moderation/users/<username>/ban  {"reason", "duration_days"}
    """
    permission_classes = [IsModerator]

    def post(self, request, username):
        user = user_service.get_by_username(username)
        serializer = BanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = moderation_service.ban_user(
            user, request.user,
            serializer.validated_data['reason'],
            serializer.validated_data.get('duration_days'),
        )
        return Response({
            'username': user.username,
            'banned_at': user.banned_at,
            'banned_until': user.banned_until,
        })


class UnbanUserView(APIView):
    """
    POST /api/v1/moderation/users/<username>/unban
    """
    permission_classes = [IsModerator]

    def post(self, request, username):
        user = user_service.get_by_username(username)
        serializer = UnbanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        moderation_service.unban_user(user, request.user, serializer.validated_data['reason'])
        return Response({'username': user.username, 'banned': False})
