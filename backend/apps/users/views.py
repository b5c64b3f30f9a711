"""
User directory, profile and settings views.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated

from apps.core.utils.params import pagination
from apps.stories.views import story_payload
from .serializers import UserSummarySerializer, SettingsSerializer, TagPreferencesSerializer
from .services import user_service


class UserListView(APIView):
    """
    GET /api/v1/users?order=karma|newest
    """
    permission_classes = [AllowAny]

    def get(self, request):
        limit, offset = pagination(request, default_limit=50, max_limit=200)
        users = user_service.list_users(request.query_params.get('order', 'karma'), limit, offset)
        return Response({'users': UserSummarySerializer(users, many=True).data})


class UserDetailView(APIView):
    """
    GET /api/v1/users/<username>
    """
    permission_classes = [AllowAny]

    def get(self, request, username):
        from apps.stories.services import story_service

        user = user_service.get_by_username(username)
        stories = story_service.get_stories(sort='newest', limit=10, user=user)
        return Response({
            'user': user_service.profile(user),
            'is_following': user_service.is_following(request.user, user),
            'stories': story_payload(stories, request.user),
        })


class SettingsView(APIView):
    """
    GET /api/v1/settings
    PUT /api/v1/settings
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'settings': SettingsSerializer(request.user).data})

    def put(self, request):
        user = user_service.update_settings(request.user, request.data)
        return Response({'settings': SettingsSerializer(user).data})


class TagPreferencesView(APIView):
    """
    PUT /api/v1/settings/tags  {"filtered": [...], "favorite": [...]}
    """
    permission_classes = [IsAuthenticated]

    def put(self, request):
        serializer = TagPreferencesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = user_service.update_tag_preferences(
            request.user,
            filtered=serializer.validated_data.get('filtered'),
            favorite=serializer.validated_data.get('favorite'),
        )
        return Response({
            'filtered_tags': user.filtered_tags,
            'favorite_tags': user.favorite_tags,
        })


class FollowView(APIView):
    """
    POST   /api/v1/users/<username>/follow
    DELETE /api/v1/users/<username>/follow
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, username):
        user_service.follow(request.user, username)
        return Response({'following': True})

    def delete(self, request, username):
        user_service.unfollow(request.user, username)
        return Response({'following': False})
