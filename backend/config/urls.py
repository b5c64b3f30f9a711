"""
URL configuration for the linkboard project.
"""

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse
from django.db import connection
from django.core.cache import cache
import logging

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint

    Probes the database and the cache backend.
    """
    checks = {}
    healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        checks['database'] = 'connected'
    except Exception as e:
        logger.error(f'Health check database failure: {e}')
        checks['database'] = 'unavailable'
        healthy = False

    try:
        cache.set('health_check', 'ok', 10)
        checks['cache'] = 'connected' if cache.get('health_check') == 'ok' else 'degraded'
    except Exception as e:
        logger.error(f'Health check cache failure: {e}')
        checks['cache'] = 'unavailable'
        healthy = False

    return JsonResponse({
        'status': 'healthy' if healthy else 'unhealthy',
        'checks': checks,
    }, status=200 if healthy else 503)


def csrf_token_view(request):
    """CSRF token endpoint for browser clients"""
    from django.middleware.csrf import get_token
    return JsonResponse({
        'csrfToken': get_token(request)
    })


api_v1_patterns = [
    path('auth/', include('apps.authentication.urls')),
    path('moderation/', include('apps.moderation.urls')),
    path('intelligence/', include('apps.intelligence.urls')),
    path('sync/', include('apps.sync.urls')),
    path('', include('apps.invitations.urls')),
    path('', include('apps.comments.urls')),
    path('', include('apps.messaging.urls')),
    path('', include('apps.notifications.urls')),
    path('', include('apps.search.urls')),
    path('', include('apps.stories.urls')),
    path('', include('apps.users.urls')),
]

urlpatterns = [
    path('admin/', admin.site.urls),

    # Health check
    path('health', health_check, name='health_check'),

    # CSRF token
    path('api/csrf-token', csrf_token_view, name='csrf_token'),

    # JSON API
    path('api/v1/', include(api_v1_patterns)),

    # Server-rendered pages and RSS feeds
    path('', include('apps.web.urls')),
]

handler404 = 'apps.web.views.page_not_found'
