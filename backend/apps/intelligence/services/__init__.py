"""
Content intelligence services.
"""

from .categorization import ContentCategorizationService, content_categorization_service
from .duplicates import DuplicateDetectionService, duplicate_detection_service
from .recommendations import RecommendationService, recommendation_service

__all__ = [
    'ContentCategorizationService',
    'content_categorization_service',
    'DuplicateDetectionService',
    'duplicate_detection_service',
    'RecommendationService',
    'recommendation_service',
]
