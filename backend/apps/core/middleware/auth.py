"""
JWT identification middleware.

Attaches request.user_jwt for every request so that non-DRF code (rate
limiting, usage logging, server-rendered pages) knows who is calling. It never
rejects a request; DRF authentication decides what the API accepts.
"""

import logging
from django.utils.deprecation import MiddlewareMixin

from apps.core.exceptions import NotAuthenticated

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = 'access_token'


class JWTAuthenticationMiddleware(MiddlewareMixin):
    """
    Decode the Bearer token (or access_token cookie) if present
    """

    def process_request(self, request):
        from apps.authentication.services import jwt_service

        request.user_jwt = None

        auth_header = request.META.get('HTTP_AUTHORIZATION', '')
        token = jwt_service.extract_token_from_header(auth_header) if auth_header else None
        if not token:
            token = request.COOKIES.get(ACCESS_TOKEN_COOKIE)
        if not token:
            return None

        try:
            payload = jwt_service.validate_token(token)
        except NotAuthenticated as e:
            logger.debug(f'Ignoring unusable token on {request.path}: {e.code}')
            return None

        if payload.get('type') not in ('access', 'api_key'):
            return None

        request.user_jwt = {
            'user_id': payload.get('userId'),
            'username': payload.get('username'),
            'type': payload.get('type'),
            'scopes': payload.get('scopes', []),
        }
        return None
