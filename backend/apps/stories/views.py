"""
Story and tag views.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated, IsAuthenticatedOrReadOnly

from apps.core.exceptions import ValidationFailed
from apps.core.permissions import HasScope
from apps.core.utils.params import pagination
from .serializers import (
    StorySerializer,
    StoryCreateSerializer,
    StoryUpdateSerializer,
    TagSerializer,
    TagCreateSerializer,
)
from .services import story_service, tag_service


def story_payload(stories, user):
    """Serialized stories with the viewer's vote/saved/hidden state"""
    state = story_service.story_state_for(stories, user)
    data = StorySerializer(stories, many=True).data
    for story, item in zip(stories, data):
        if story.id in state:
            item.update(state[story.id])
    return data


class StoryListView(APIView):
    """
    GET  /api/v1/stories?sort=hot|newest|recent|top&tag=&domain=&period=&limit=&offset=
    POST /api/v1/stories
    """
    permission_classes = [IsAuthenticatedOrReadOnly, HasScope]
    required_scope = {'GET': 'stories:read', 'POST': 'stories:write'}

    def get(self, request):
        limit, offset = pagination(request)
        sort = request.query_params.get('sort', 'hot')

        stories = story_service.get_stories(
            sort=sort,
            limit=limit,
            offset=offset,
            tag=request.query_params.get('tag') or None,
            domain=request.query_params.get('domain') or None,
            viewer=request.user,
            period=request.query_params.get('period', 'all'),
        )
        return Response({
            'stories': story_payload(stories, request.user),
            'sort': sort,
            'limit': limit,
            'offset': offset,
        })

    def post(self, request):
        serializer = StoryCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        story = story_service.create_story(
            request.user,
            data['title'],
            url=data.get('url'),
            description=data.get('description', ''),
            tags=data.get('tags', []),
            user_is_author=data.get('user_is_author', False),
        )
        return Response({'story': StorySerializer(story).data}, status=status.HTTP_201_CREATED)


class StoryDetailView(APIView):
    """
    GET    /api/v1/stories/<short_id>   story with comment tree
    PUT    /api/v1/stories/<short_id>
    DELETE /api/v1/stories/<short_id>
    """
    permission_classes = [IsAuthenticatedOrReadOnly, HasScope]
    required_scope = {'read': 'stories:read', 'write': 'stories:write'}

    def get(self, request, short_id):
        from apps.comments.serializers import serialize_tree
        from apps.comments.services import comment_service
        from apps.votes.services import vote_service

        story = story_service.get_story_by_short_id(short_id)
        sort = request.query_params.get('comment_sort', 'confidence')

        data = story_payload([story], request.user)[0]
        data['can_edit'] = story_service.can_edit(story, request.user)

        return Response({
            'story': data,
            'comments': serialize_tree(comment_service.get_comment_tree(story, sort)),
            'comment_votes': vote_service.comment_votes_for(request.user, story),
        })

    def put(self, request, short_id):
        story = story_service.get_story_by_short_id(short_id)
        serializer = StoryUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        story = story_service.update_story(story, request.user, serializer.validated_data)
        return Response({'story': StorySerializer(story).data})

    def delete(self, request, short_id):
        story = story_service.get_story_by_short_id(short_id)
        story_service.delete_story(story, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class StorySaveView(APIView):
    """
    POST   /api/v1/stories/<short_id>/save
    DELETE /api/v1/stories/<short_id>/save
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, short_id):
        story = story_service.get_story_by_short_id(short_id)
        story_service.save_story(story, request.user)
        return Response({'saved': True})

    def delete(self, request, short_id):
        story = story_service.get_story_by_short_id(short_id)
        story_service.unsave_story(story, request.user)
        return Response({'saved': False})


class StoryHideView(APIView):
    """
    POST   /api/v1/stories/<short_id>/hide
    DELETE /api/v1/stories/<short_id>/hide
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, short_id):
        story = story_service.get_story_by_short_id(short_id)
        story_service.hide_story(story, request.user)
        return Response({'hidden': True})

    def delete(self, request, short_id):
        story = story_service.get_story_by_short_id(short_id)
        story_service.unhide_story(story, request.user)
        return Response({'hidden': False})


class SavedStoriesView(APIView):
    """
    GET /api/v1/stories/saved
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        stories = story_service.saved_stories(request.user)
        return Response({'stories': story_payload(stories, request.user)})


class TagListView(APIView):
    """
    GET  /api/v1/tags
    POST /api/v1/tags
    """
    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request):
        return Response({'tags': tag_service.all_tags_with_counts()})

    def post(self, request):
        serializer = TagCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        tag = tag_service.create_tag(
            request.user,
            data['tag'],
            description=data.get('description', ''),
            privileged=data.get('privileged', False),
            category=data.get('category', ''),
        )
        return Response({'tag': TagSerializer(tag).data}, status=status.HTTP_201_CREATED)


class TagSuggestView(APIView):
    """
    GET /api/v1/tags/suggest?title=&description=
    """
    permission_classes = [AllowAny]

    def get(self, request):
        title = request.query_params.get('title', '')
        if not title.strip():
            raise ValidationFailed('title is required')

        return Response({
            'suggestions': tag_service.suggest_tags(title, request.query_params.get('description', '')),
        })
