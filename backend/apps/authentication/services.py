"""
Authentication services: token issuing/validation and account lifecycle.
"""

import re
import uuid
import secrets
import logging
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Optional

import jwt
from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.mail import send_mail
from django.core.validators import validate_email
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.core.exceptions import (
    Conflict,
    Forbidden,
    NotAuthenticated,
    ValidationFailed,
)
from apps.core.services.rate_limiter import rate_limit_service
from apps.core.utils.crypto import hash_text
from .models import User, RefreshToken

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_-]{3,50}$')
MIN_PASSWORD_LENGTH = 8
PASSWORD_RESET_TTL = timedelta(hours=1)


class JwtService:
    """
    Issues and validates the three token types used by the API.

    access   - short lived, signed with JWT_SECRET_KEY
    refresh  - long lived, signed with JWT_REFRESH_SECRET_KEY, persisted
    api_key  - long lived access token restricted to a list of scopes
    """

    AVAILABLE_SCOPES = {
        'read': 'Read access to public resources',
        'write': 'Create and modify your own content',
        'stories:read': 'Read stories',
        'stories:write': 'Submit and edit stories',
        'comments:read': 'Read comments',
        'comments:write': 'Post and edit comments',
        'votes': 'Vote on stories and comments',
        'messages': 'Read and send private messages',
        'all': 'Full access',
    }

    def _encode(self, payload: dict, lifetime: timedelta, secret: str) -> str:
        now = datetime.now(dt_timezone.utc)
        return jwt.encode(
            {
                **payload,
                'iss': settings.JWT_ISSUER,
                'iat': now,
                'exp': now + lifetime,
                'jti': uuid.uuid4().hex,
            },
            secret,
            algorithm=settings.JWT_ALGORITHM,
        )

    def _base_payload(self, user: User, token_type: str) -> dict:
        return {
            'sub': str(user.id),
            'userId': user.id,
            'username': user.username,
            'type': token_type,
        }

    def generate_access_token(self, user: User) -> str:
        return self._encode(
            self._base_payload(user, 'access'),
            settings.JWT_ACCESS_TOKEN_LIFETIME,
            settings.JWT_SECRET_KEY,
        )

    def generate_refresh_token(self, user: User) -> str:
        return self._encode(
            self._base_payload(user, 'refresh'),
            settings.JWT_REFRESH_TOKEN_LIFETIME,
            settings.JWT_REFRESH_SECRET_KEY,
        )

    def generate_api_key(self, user: User, name: str = '', scopes: Optional[list] = None,
                         expires_in_days: Optional[int] = None) -> dict:
        """
        Issue an API key token.

        Raises:
            ValidationFailed: If a scope is unknown or the lifetime is not positive
        """
        scopes = list(scopes or [])
        unknown = [s for s in scopes if s not in self.AVAILABLE_SCOPES]
        if unknown:
            raise ValidationFailed(
                f'Unknown scopes: {", ".join(unknown)}',
                details={'available_scopes': list(self.AVAILABLE_SCOPES)},
            )

        days = expires_in_days or settings.JWT_API_KEY_DEFAULT_DAYS
        if days < 1:
            raise ValidationFailed('expires_in_days must be positive')

        payload = self._base_payload(user, 'api_key')
        payload['scopes'] = scopes
        payload['name'] = name

        token = self._encode(payload, timedelta(days=days), settings.JWT_SECRET_KEY)
        logger.info(f'API key "{name}" issued for user {user.id} with scopes {scopes}')
        return {
            'api_key': token,
            'name': name,
            'scopes': scopes,
            'expires_at': (timezone.now() + timedelta(days=days)).isoformat(),
        }

    def validate_token(self, token: str, refresh: bool = False) -> dict:
        """
        Decode and verify a token.

        Raises:
            NotAuthenticated: With code TOKEN_EXPIRED or INVALID_TOKEN
        """
        secret = settings.JWT_REFRESH_SECRET_KEY if refresh else settings.JWT_SECRET_KEY
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[settings.JWT_ALGORITHM],
                issuer=settings.JWT_ISSUER,
            )
        except jwt.ExpiredSignatureError:
            raise NotAuthenticated('Token has expired', code='TOKEN_EXPIRED')
        except jwt.InvalidTokenError:
            raise NotAuthenticated('Invalid token', code='INVALID_TOKEN')

    def has_scope(self, payload: dict, scope: str) -> bool:
        """
        Whether an API key payload grants a scope.

        Empty scope lists and 'all' grant everything. The generic 'read' and
        'write' scopes cover every '<resource>:read' / '<resource>:write'.
        """
        scopes = payload.get('scopes') or []
        if not scopes or 'all' in scopes or scope in scopes:
            return True
        if ':' in scope:
            return scope.split(':', 1)[1] in scopes
        return False

    def get_available_scopes(self) -> dict:
        return dict(self.AVAILABLE_SCOPES)

    def extract_token_from_header(self, header: str) -> Optional[str]:
        """Token from a 'Bearer <token>' header, None if malformed."""
        parts = (header or '').split()
        if len(parts) != 2 or parts[0].lower() != 'bearer':
            return None
        return parts[1]


class AuthService:
    """
    Registration, login and token management
    """

    def validate_username(self, username: str) -> None:
        if not username or not USERNAME_PATTERN.match(username):
            raise ValidationFailed(
                'Username must be 3-50 characters: letters, numbers, underscores and hyphens'
            )

    def validate_password(self, password: str) -> None:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long')

    def register(self, username: str, email: str, password: str,
                 invitation_code: Optional[str] = None) -> User:
        """
        Register a new user

        Args:
            username: Public handle
            email: User's email address
            password: User's password (plain text)
            invitation_code: Required when INVITATION_REQUIRED is set

        Returns:
            User instance

        Raises:
            ValidationFailed: If input or the invitation is invalid
            Conflict: If the username or email is taken
        """
        from apps.invitations.services import invitation_service
        from apps.notifications.services import notification_service

        username = (username or '').strip()
        email = (email or '').strip().lower()

        self.validate_username(username)
        try:
            validate_email(email)
        except DjangoValidationError:
            raise ValidationFailed('A valid email address is required')
        self.validate_password(password)

        invitation = None
        if invitation_code or settings.INVITATION_REQUIRED:
            invitation = invitation_service.validate_code(invitation_code)

        if User.objects.filter(username__iexact=username).exists():
            raise Conflict('Username is already taken', code='USER_EXISTS')
        if User.objects.filter(email=email).exists():
            raise Conflict('User with this email already exists', code='USER_EXISTS')

        with transaction.atomic():
            user = User(username=username, email=email)
            if invitation is not None:
                user.invited_by = invitation.inviter
            user.set_password(password)
            user.save()

            if invitation is not None:
                invitation_service.use_invitation(invitation, user)

        if invitation is not None:
            notification_service.notify_invitation_used(invitation.inviter, user)

        logger.info(f'Registered user {user.username} ({user.id})')
        return user

    def login(self, identifier: str, password: str) -> tuple:
        """
        Login with username or email

        Returns:
            Tuple of (User instance, tokens dict)

        Raises:
            RateLimited: After too many attempts for the identifier
            NotAuthenticated: If credentials are invalid
            Forbidden: If the account is banned
        """
        identifier = (identifier or '').strip()
        if not identifier or not password:
            raise ValidationFailed('Username/email and password are required')

        rate_limit_service.check('login_attempts', identifier.lower())

        user = User.objects.filter(
            Q(username__iexact=identifier) | Q(email__iexact=identifier)
        ).first()

        if user is None or not user.check_password(password):
            raise NotAuthenticated('Invalid username or password', code='AUTHENTICATION_FAILED')

        if user.is_banned:
            raise Forbidden(
                'This account has been banned',
                code='ACCOUNT_BANNED',
                details={'reason': user.banned_reason},
            )

        rate_limit_service.reset_limit('login_attempts', identifier.lower())
        user.last_login_at = timezone.now()
        user.save(update_fields=['last_login_at'])

        return user, self.generate_tokens(user)

    def generate_tokens(self, user: User) -> dict:
        """
        Issue an access/refresh pair and persist the refresh token
        """
        access_token = jwt_service.generate_access_token(user)
        refresh_token = jwt_service.generate_refresh_token(user)

        RefreshToken.objects.create(
            user=user,
            token=refresh_token,
            expires_at=timezone.now() + settings.JWT_REFRESH_TOKEN_LIFETIME,
        )

        return {
            'accessToken': access_token,
            'refreshToken': refresh_token,
            'expiresIn': int(settings.JWT_ACCESS_TOKEN_LIFETIME.total_seconds()),
        }

    def refresh_access_token(self, refresh_token: str) -> dict:
        """
        Rotate a refresh token into a new token pair

        Raises:
            NotAuthenticated: If token is invalid, expired, or revoked
        """
        payload = jwt_service.validate_token(refresh_token, refresh=True)
        if payload.get('type') != 'refresh':
            raise NotAuthenticated('Invalid refresh token', code='INVALID_TOKEN')

        token_record = RefreshToken.objects.select_related('user').filter(token=refresh_token).first()
        if token_record is None:
            raise NotAuthenticated('Invalid refresh token', code='INVALID_TOKEN')
        if token_record.is_revoked:
            raise NotAuthenticated('Refresh token has been revoked', code='TOKEN_REVOKED')
        if token_record.is_expired:
            raise NotAuthenticated('Refresh token has expired', code='TOKEN_EXPIRED')
        if token_record.user.is_banned:
            raise Forbidden('This account has been banned', code='ACCOUNT_BANNED')

        new_tokens = self.generate_tokens(token_record.user)

        token_record.revoked_at = timezone.now()
        token_record.save(update_fields=['revoked_at'])

        return new_tokens

    def logout(self, refresh_token: str) -> None:
        RefreshToken.objects.filter(token=refresh_token, revoked_at__isnull=True).update(
            revoked_at=timezone.now()
        )

    def revoke_all_user_tokens(self, user_id) -> int:
        return RefreshToken.objects.filter(
            user_id=user_id,
            revoked_at__isnull=True
        ).update(revoked_at=timezone.now())

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not user.check_password(current_password or ''):
            raise ValidationFailed('Current password is incorrect')
        self.validate_password(new_password)
        user.set_password(new_password)
        user.save(update_fields=['password_hash', 'updated_at'])
        self.revoke_all_user_tokens(user.id)

    def request_password_reset(self, email: str) -> None:
        """
        Email a reset link. Unknown addresses are silently ignored.
        """
        email = (email or '').strip().lower()
        rate_limit_service.check('password_reset', email)

        user = User.objects.filter(email=email).first()
        if user is None or user.is_banned:
            logger.info('Password reset requested for unknown or banned address')
            return

        token = secrets.token_urlsafe(32)
        user.password_reset_token_hash = hash_text(token)
        user.password_reset_sent_at = timezone.now()
        user.save(update_fields=['password_reset_token_hash', 'password_reset_sent_at'])

        reset_url = f'{settings.SITE_URL}/auth/reset-password?token={token}'
        send_mail(
            subject=f'[{settings.SITE_NAME}] Reset your password',
            message=(
                f'Hi {user.username},\n\n'
                f'Someone requested a password reset for your account. '
                f'Use the link below within one hour:\n\n{reset_url}\n\n'
                f'If this was not you, you can ignore this message.\n'
            ),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[user.email],
        )

    def reset_password(self, token: str, new_password: str) -> User:
        if not token:
            raise ValidationFailed('Reset token is required')

        user = User.objects.filter(password_reset_token_hash=hash_text(token)).first()
        if (
            user is None
            or user.password_reset_sent_at is None
            or timezone.now() - user.password_reset_sent_at > PASSWORD_RESET_TTL
        ):
            raise ValidationFailed('Reset token is invalid or has expired', code='INVALID_RESET_TOKEN')

        self.validate_password(new_password)
        user.set_password(new_password)
        user.password_reset_token_hash = ''
        user.password_reset_sent_at = None
        user.save(update_fields=['password_hash', 'password_reset_token_hash', 'password_reset_sent_at', 'updated_at'])
        self.revoke_all_user_tokens(user.id)
        return user


# Create singleton instances
jwt_service = JwtService()
auth_service = AuthService()
