"""
Core services module.
"""

from .rate_limiter import (
    RateLimitConfig,
    RateLimitState,
    RateLimitService,
    ACTION_RATE_LIMITS,
    rate_limit_service,
)
from .cache import CacheService, cache_service

__all__ = [
    'RateLimitConfig',
    'RateLimitState',
    'RateLimitService',
    'ACTION_RATE_LIMITS',
    'rate_limit_service',
    'CacheService',
    'cache_service',
]
