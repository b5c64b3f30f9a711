"""
API usage logging middleware.
"""

import time
import logging
from django.db import DatabaseError
from django.utils.deprecation import MiddlewareMixin

from apps.core.models import ApiUsageLog

logger = logging.getLogger(__name__)


class APIUsageLoggerMiddleware(MiddlewareMixin):
    """
    Logs every /api/ request and stores an ApiUsageLog row for
    authenticated callers.
    """

    def process_request(self, request):
        request._usage_started = time.monotonic()

    def process_response(self, request, response):
        if not request.path.startswith('/api/'):
            return response

        started = getattr(request, '_usage_started', None)
        duration_ms = int((time.monotonic() - started) * 1000) if started else 0

        logger.info(f'{request.method} {request.path} {response.status_code} {duration_ms}ms')

        user_jwt = getattr(request, 'user_jwt', None)
        if not user_jwt or not user_jwt.get('user_id'):
            return response

        try:
            ApiUsageLog.objects.create(
                user_id=user_jwt['user_id'],
                endpoint=request.path[:255],
                method=request.method,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
        except DatabaseError as e:
            # Log error but don't fail the request
            logger.error(f'Failed to log API usage: {e}')

        return response
