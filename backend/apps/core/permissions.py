"""
DRF permission classes for roles and API key scopes.
"""

from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsModerator(BasePermission):
    """Moderators and admins"""
    message = 'Moderator access required'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_staff_member)


class IsAdmin(BasePermission):
    message = 'Administrator access required'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class HasScope(BasePermission):
    """
    Checks API key scopes against view.required_scope.

    required_scope is either a scope name or a dict keyed by HTTP method
    ('read' and 'write' may be used as keys for safe and unsafe methods).
    Regular access tokens are not scoped.
    """
    message = 'API key does not have the required scope'

    def has_permission(self, request, view):
        from apps.authentication.services import jwt_service

        payload = request.auth
        if not payload or payload.get('type') != 'api_key':
            return True

        required = getattr(view, 'required_scope', None)
        if isinstance(required, dict):
            required = required.get(request.method) or required.get(
                'read' if request.method in SAFE_METHODS else 'write'
            )
        if not required:
            return True

        return jwt_service.has_scope(payload, required)
