"""
Search views.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny

from apps.comments.serializers import CommentSerializer
from apps.core.middleware.ratelimit import client_ip
from apps.core.utils.params import pagination
from apps.stories.views import story_payload
from apps.users.serializers import UserSummarySerializer
from .services import search_service


class SearchView(APIView):
    """
    GET /api/v1/search?q=&type=all|stories|comments|users&order=relevance|newest|score
    """
    permission_classes = [AllowAny]

    def get(self, request):
        limit, offset = pagination(request)
        identifier = f'user:{request.user.id}' if request.user else f'ip:{client_ip(request)}'

        result = search_service.search(
            request.query_params.get('q', ''),
            type=request.query_params.get('type', 'all'),
            order=request.query_params.get('order', 'relevance'),
            limit=limit,
            offset=offset,
            identifier=identifier,
        )
        return Response({
            'query': result['query'],
            'total': result['total'],
            'stories': story_payload(result['stories'], request.user),
            'comments': CommentSerializer(result['comments'], many=True).data,
            'users': UserSummarySerializer(result['users'], many=True).data,
        })


class AutocompleteView(APIView):
    """
    GET /api/v1/search/autocomplete?q=
    """
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({'suggestions': search_service.autocomplete(request.query_params.get('q', ''))})
