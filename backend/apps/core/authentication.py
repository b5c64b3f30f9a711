"""
DRF JWT Authentication class.

Resolves the Bearer token to a User; request.auth carries the token payload
so views and permissions can inspect the token type and API key scopes.
"""

from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed


class JWTAuthentication(BaseAuthentication):
    """
    JWT Authentication for Django Rest Framework
    """

    def authenticate(self, request):
        """
        Authenticate the request using JWT token

        Returns:
            Tuple of (User, payload) if authenticated
            None if no authentication attempted

        Raises:
            AuthenticationFailed if authentication fails
        """
        from apps.authentication.models import User
        from apps.authentication.services import jwt_service
        from apps.core.exceptions import NotAuthenticated

        auth_header = request.META.get('HTTP_AUTHORIZATION', '')

        if not auth_header:
            return None  # No authentication attempted

        token = jwt_service.extract_token_from_header(auth_header)
        if not token:
            raise AuthenticationFailed('Authorization header must be in format: Bearer <token>')

        try:
            payload = jwt_service.validate_token(token)
        except NotAuthenticated as e:
            raise AuthenticationFailed(e.message)

        if payload.get('type') not in ('access', 'api_key'):
            raise AuthenticationFailed('Token cannot be used for API access')

        user = User.objects.filter(pk=payload.get('userId')).first()
        if user is None:
            raise AuthenticationFailed('User no longer exists')

        if user.is_banned:
            raise AuthenticationFailed('Account is banned')

        return (user, payload)

    def authenticate_header(self, request):
        """
        Return the authentication header to use for 401 responses
        """
        return 'Bearer realm="api"'
