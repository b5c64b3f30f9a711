"""
Websocket authentication middleware.

The access token travels in the query string (?token=...) since browsers
cannot set headers on websocket requests.
"""

from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware

from apps.core.exceptions import NotAuthenticated


@database_sync_to_async
def get_user_for_token(token):
    from apps.authentication.models import User
    from apps.authentication.services import jwt_service

    try:
        payload = jwt_service.validate_token(token)
    except NotAuthenticated:
        return None
    if payload.get('type') not in ('access', 'api_key'):
        return None

    user = User.objects.filter(id=payload.get('userId')).first()
    if user is None or user.is_banned:
        return None
    return user


class JWTAuthMiddleware(BaseMiddleware):
    """
    Puts the token's User in scope['user'], AnonymousUser otherwise
    """

    async def __call__(self, scope, receive, send):
        from django.contrib.auth.models import AnonymousUser

        query_params = parse_qs(scope.get('query_string', b'').decode())
        token = query_params.get('token', [None])[0]

        user = await get_user_for_token(token) if token else None
        scope['user'] = user if user is not None else AnonymousUser()

        return await super().__call__(scope, receive, send)
