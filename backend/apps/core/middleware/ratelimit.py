"""
Request rate limiting middleware.

Sliding window of request timestamps kept in the cache, per user when a token
is present and per client IP otherwise.
"""

import time
import logging
from datetime import datetime, timezone as dt_timezone
from django.core.cache import cache
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin
from django.conf import settings

logger = logging.getLogger(__name__)

STRICT_PATHS = (
    '/api/v1/auth/login',
    '/api/v1/auth/register',
    '/api/v1/auth/password/',
)


def client_ip(request) -> str:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', 'unknown')


class RateLimitMiddleware(MiddlewareMixin):
    """
    Limits /api/ traffic to RATE_LIMIT_MAX_REQUESTS per RATE_LIMIT_WINDOW.

    Authentication endpoints use RATE_LIMIT_STRICT_MAX_REQUESTS.
    """

    def __init__(self, get_response):
        super().__init__(get_response)
        self.window_ms = settings.RATE_LIMIT_WINDOW * 1000
        self.key_prefix = 'ratelimit:api'

    def _limit_for(self, path: str) -> tuple:
        if path.startswith(STRICT_PATHS):
            return settings.RATE_LIMIT_STRICT_MAX_REQUESTS, 'strict'
        return settings.RATE_LIMIT_MAX_REQUESTS, 'default'

    def process_request(self, request):
        """
        Check rate limit before processing request
        """
        if not request.path.startswith('/api/'):
            return None

        user_jwt = getattr(request, 'user_jwt', None)
        identity = f'user:{user_jwt["user_id"]}' if user_jwt else f'ip:{client_ip(request)}'
        max_requests, bucket = self._limit_for(request.path)

        key = f'{self.key_prefix}:{bucket}:{identity}'
        now = int(time.time() * 1000)
        window_start = now - self.window_ms

        try:
            requests_data = cache.get(key, [])
        except Exception as e:
            logger.warning(f'Rate limiter cache error: {e}')
            return None  # Allow request if the cache is down

        requests_data = [ts for ts in requests_data if ts > window_start]
        request_count = len(requests_data)

        if request_count >= max_requests:
            oldest_request = min(requests_data) if requests_data else now
            retry_after = max(1, int((oldest_request + self.window_ms - now) / 1000))

            response = JsonResponse({
                'error': {
                    'code': 'RATE_LIMIT_EXCEEDED',
                    'message': 'Rate limit exceeded. Please try again later.',
                    'retryable': True,
                    'details': {
                        'limit': max_requests,
                        'windowMs': self.window_ms,
                        'retry_after': retry_after,
                    }
                }
            }, status=429)

            response['X-RateLimit-Limit'] = str(max_requests)
            response['X-RateLimit-Remaining'] = '0'
            response['X-RateLimit-Reset'] = self._reset_header(now + retry_after * 1000)
            response['Retry-After'] = str(retry_after)
            return response

        requests_data.append(now)
        try:
            cache.set(key, requests_data, timeout=int(self.window_ms / 1000) + 1)
        except Exception as e:
            logger.warning(f'Rate limiter cache error: {e}')
            return None

        request.rate_limit_remaining = max_requests - request_count - 1
        request.rate_limit_limit = max_requests
        return None

    def process_response(self, request, response):
        """
        Add rate limit headers to response
        """
        if hasattr(request, 'rate_limit_remaining'):
            response['X-RateLimit-Limit'] = str(request.rate_limit_limit)
            response['X-RateLimit-Remaining'] = str(request.rate_limit_remaining)
            response['X-RateLimit-Reset'] = self._reset_header(int(time.time() * 1000) + self.window_ms)

        return response

    @staticmethod
    def _reset_header(timestamp_ms: int) -> str:
        return datetime.fromtimestamp(timestamp_ms / 1000, tz=dt_timezone.utc).isoformat()
