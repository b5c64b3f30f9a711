"""
Duplicate detection, content analysis and recommendation views.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated

from apps.core.utils.params import int_param
from apps.stories.models import Story
from apps.stories.services import story_service
from apps.stories.views import story_payload
from .serializers import AnalyzeContentSerializer, DuplicateCheckSerializer, SimilaritySerializer
from .similarity import interpret_similarity, similarity_metrics
from .services import (
    content_categorization_service,
    duplicate_detection_service,
    recommendation_service,
)


def recommendation_payload(entries, user):
    """Stories for recommendation entries, each with its scores and reasons"""
    by_id = Story.objects.select_related('user').prefetch_related('tags').in_bulk(
        [entry['story_id'] for entry in entries]
    )
    kept = [entry for entry in entries if entry['story_id'] in by_id]
    stories = [by_id[entry['story_id']] for entry in kept]

    data = story_payload(stories, user)
    for entry, item in zip(kept, data):
        item['recommendation'] = {
            'score': entry['total_score'],
            'algorithm_scores': entry['algorithm_scores'],
            'reasons': entry['reasons'],
        }
    return data


class DuplicateCheckView(APIView):
    """
    POST /api/v1/intelligence/duplicates
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = DuplicateCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        exclude_id = None
        if data.get('exclude'):
            exclude_id = story_service.get_story_by_short_id(data['exclude']).id

        result = duplicate_detection_service.check_duplicates(
            {field: data.get(field, '') for field in ('title', 'url', 'description', 'content')},
            exclude_id=exclude_id,
            limit=int_param(request, 'limit', 10, minimum=1, maximum=50),
        )
        return Response(result)


class SimilarStoriesView(APIView):
    """
    GET /api/v1/intelligence/stories/<short_id>/similar
    """
    permission_classes = [AllowAny]

    def get(self, request, short_id):
        story = story_service.get_story_by_short_id(short_id)
        similar = duplicate_detection_service.find_similar_stories(
            story, limit=int_param(request, 'limit', 10, minimum=1, maximum=50)
        )
        return Response({'story': story.short_id, 'similar': similar})


class SimilarityView(APIView):
    """
    POST /api/v1/intelligence/similarity

    Compares two texts, and optionally two titles and two URLs.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = SimilaritySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        metrics = similarity_metrics(
            data['content1'], data['content2'],
            title1=data['title1'], title2=data['title2'],
            url1=data['url1'], url2=data['url2'],
        )
        return Response({
            'similarity': metrics,
            'interpretation': interpret_similarity(metrics['overall']),
        })


class AnalyzeContentView(APIView):
    """
    POST /api/v1/intelligence/analyze
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = AnalyzeContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        content = dict(serializer.validated_data)

        analysis = content_categorization_service.analyze(content)
        duplicate_check = duplicate_detection_service.check_duplicates(content, limit=5)
        return Response({
            'analysis': analysis,
            'duplicate_check': duplicate_check,
            'recommendations': content_categorization_service.recommendations(analysis, duplicate_check),
        })


class RecommendationsView(APIView):
    """
    GET /api/v1/intelligence/recommendations?limit=

    Personalized for authenticated users, popular and trending otherwise.
    """
    permission_classes = [AllowAny]

    def get(self, request):
        limit = int_param(request, 'limit', 20, minimum=1, maximum=50)
        entries = recommendation_service.for_user(request.user, limit)
        return Response({
            'recommendations': recommendation_payload(entries, request.user),
            'personalized': request.user is not None,
        })


class RecommendationExplainView(APIView):
    """
    GET /api/v1/intelligence/recommendations/<short_id>/explain
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, short_id):
        story = story_service.get_story_by_short_id(short_id)
        return Response(recommendation_service.explain(request.user, story))
