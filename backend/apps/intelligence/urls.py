from django.urls import path
from .views import (
    DuplicateCheckView,
    SimilarStoriesView,
    SimilarityView,
    AnalyzeContentView,
    RecommendationsView,
    RecommendationExplainView,
)

app_name = 'intelligence'

urlpatterns = [
    # POST /api/v1/intelligence/duplicates
    path('duplicates', DuplicateCheckView.as_view(), name='duplicates'),

    # GET /api/v1/intelligence/stories/<short_id>/similar
    path('stories/<str:short_id>/similar', SimilarStoriesView.as_view(), name='similar'),

    # POST /api/v1/intelligence/similarity
    path('similarity', SimilarityView.as_view(), name='similarity'),

    # POST /api/v1/intelligence/analyze
    path('analyze', AnalyzeContentView.as_view(), name='analyze'),

    # GET /api/v1/intelligence/recommendations
    path('recommendations', RecommendationsView.as_view(), name='recommendations'),

    # GET /api/v1/intelligence/recommendations/<short_id>/explain
    path('recommendations/<str:short_id>/explain', RecommendationExplainView.as_view(), name='explain'),
]
