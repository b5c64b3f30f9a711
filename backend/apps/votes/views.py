"""
Vote views for stories and comments.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from apps.comments.services import comment_service
from apps.core.permissions import HasScope
from apps.stories.services import story_service
from .serializers import VoteSerializer
from .services import vote_service


class StoryVoteView(APIView):
    """
    POST /api/v1/stories/<short_id>/vote  {"direction": "up"|"down", "reason": "O"}

    Repeating a vote removes it.
    """
    permission_classes = [IsAuthenticated, HasScope]
    required_scope = 'votes'

    def post(self, request, short_id):
        story = story_service.get_story_by_short_id(short_id)
        serializer = VoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = vote_service.vote_on_story(
            request.user, story, serializer.value, serializer.validated_data.get('reason', '')
        )
        return Response(result)


class CommentVoteView(APIView):
    """
    POST /api/v1/comments/<short_id>/vote
    """
    permission_classes = [IsAuthenticated, HasScope]
    required_scope = 'votes'

    def post(self, request, short_id):
        comment = comment_service.get_by_short_id(short_id)
        serializer = VoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = vote_service.vote_on_comment(
            request.user, comment, serializer.value, serializer.validated_data.get('reason', '')
        )
        return Response(result)
