"""
Tests for registration, login, token refresh and password management.
"""

import pytest
from django.core import mail
from django.test import override_settings
from django.utils import timezone

from apps.authentication.models import RefreshToken, User
from apps.authentication.services import auth_service, jwt_service
from apps.core.exceptions import Conflict, Forbidden, NotAuthenticated, RateLimited, ValidationFailed
from apps.invitations.models import Invitation


PASSWORD = 'correct-horse-battery'


@pytest.mark.django_db
class TestRegistration:

    def test_register_returns_user_and_tokens(self, api_client):
        response = api_client.post('/api/v1/auth/register', {
            'username': 'carol',
            'email': 'Carol@Example.com',
            'password': PASSWORD,
        }, format='json')

        assert response.status_code == 201
        body = response.json()
        assert body['user']['username'] == 'carol'
        assert body['user']['email'] == 'carol@example.com'
        assert body['user']['karma'] == 1
        assert set(body['tokens']) == {'accessToken', 'refreshToken', 'expiresIn'}

    def test_duplicate_username_is_conflict(self, user):
        with pytest.raises(Conflict):
            auth_service.register('ALICE', 'other@example.com', PASSWORD)

    def test_duplicate_email_is_conflict(self, user):
        with pytest.raises(Conflict):
            auth_service.register('someone', 'alice@example.com', PASSWORD)

    @pytest.mark.parametrize('username', ['ab', 'has space', 'x' * 51, 'semi;colon'])
    def test_invalid_usernames(self, db, username):
        with pytest.raises(ValidationFailed):
            auth_service.register(username, 'new@example.com', PASSWORD)

    def test_short_password(self, db):
        with pytest.raises(ValidationFailed):
            auth_service.register('newbie', 'new@example.com', 'short')

    def test_validation_errors_use_envelope(self, api_client, db):
        response = api_client.post('/api/v1/auth/register', {'username': 'x'}, format='json')

        assert response.status_code == 400
        error = response.json()['error']
        assert error['code'] == 'VALIDATION_ERROR'
        assert error['retryable'] is False
        assert 'email' in error['details']

    @override_settings(INVITATION_REQUIRED=True)
    def test_invitation_required(self, db):
        with pytest.raises(ValidationFailed) as exc_info:
            auth_service.register('newbie', 'new@example.com', PASSWORD)
        assert exc_info.value.code == 'INVITATION_REQUIRED'

    @override_settings(INVITATION_REQUIRED=True)
    def test_register_with_invitation(self, user):
        invitation = Invitation.objects.create(inviter=user, email='new@example.com')

        new_user = auth_service.register('newbie', 'new@example.com', PASSWORD, invitation.code)

        invitation.refresh_from_db()
        assert new_user.invited_by == user
        assert invitation.is_used
        assert invitation.new_user == new_user
        assert user.notifications.filter(type='invitation').exists()

    @override_settings(INVITATION_REQUIRED=True)
    def test_used_invitation_rejected(self, user):
        invitation = Invitation.objects.create(
            inviter=user, email='new@example.com', used_at=timezone.now()
        )
        with pytest.raises(ValidationFailed) as exc_info:
            auth_service.register('newbie', 'new@example.com', PASSWORD, invitation.code)
        assert exc_info.value.code == 'INVALID_INVITATION'


@pytest.mark.django_db
class TestLogin:

    def test_login_with_username_or_email(self, api_client, user):
        for identifier in ('alice', 'ALICE@example.com'):
            response = api_client.post('/api/v1/auth/login', {
                'username': identifier, 'password': PASSWORD,
            }, format='json')
            assert response.status_code == 200
            assert response.json()['user']['username'] == 'alice'

        user.refresh_from_db()
        assert user.last_login_at is not None

    def test_wrong_password(self, api_client, user):
        response = api_client.post('/api/v1/auth/login', {
            'username': 'alice', 'password': 'wrong-password',
        }, format='json')

        assert response.status_code == 401
        assert response.json()['error']['code'] == 'AUTHENTICATION_FAILED'

    def test_banned_user_cannot_login(self, user):
        user.banned_at = timezone.now()
        user.banned_reason = 'spam'
        user.save()

        with pytest.raises(Forbidden) as exc_info:
            auth_service.login('alice', PASSWORD)
        assert exc_info.value.code == 'ACCOUNT_BANNED'
        assert exc_info.value.details == {'reason': 'spam'}

    def test_login_attempts_are_limited(self, user):
        for _ in range(5):
            with pytest.raises(NotAuthenticated):
                auth_service.login('alice', 'wrong-password')

        with pytest.raises(RateLimited):
            auth_service.login('alice', PASSWORD)

    def test_successful_login_resets_attempts(self, user):
        for _ in range(4):
            with pytest.raises(NotAuthenticated):
                auth_service.login('alice', 'wrong-password')

        auth_service.login('alice', PASSWORD)

        for _ in range(4):
            with pytest.raises(NotAuthenticated):
                auth_service.login('alice', 'wrong-password')


@pytest.mark.django_db
class TestTokens:

    def test_me(self, auth_client):
        response = auth_client.get('/api/v1/auth/me')

        assert response.status_code == 200
        assert response.json()['user']['username'] == 'alice'

    def test_me_requires_authentication(self, api_client, db):
        response = api_client.get('/api/v1/auth/me')

        assert response.status_code == 401
        assert response.json()['error']['code'] == 'UNAUTHORIZED'

    def test_invalid_bearer_token(self, api_client, db):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        assert api_client.get('/api/v1/auth/me').status_code == 401

    def test_refresh_token_cannot_access_api(self, api_client, user):
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {jwt_service.generate_refresh_token(user)}')
        assert api_client.get('/api/v1/auth/me').status_code == 401

    def test_refresh_rotates_token(self, api_client, user):
        tokens = auth_service.generate_tokens(user)

        response = api_client.post('/api/v1/auth/refresh', {'refreshToken': tokens['refreshToken']}, format='json')

        assert response.status_code == 200
        new_tokens = response.json()['tokens']
        assert new_tokens['refreshToken'] != tokens['refreshToken']
        assert RefreshToken.objects.get(token=tokens['refreshToken']).is_revoked

        reuse = api_client.post('/api/v1/auth/refresh', {'refreshToken': tokens['refreshToken']}, format='json')
        assert reuse.status_code == 401
        assert reuse.json()['error']['code'] == 'TOKEN_REVOKED'

    def test_logout_revokes_refresh_token(self, auth_client, user):
        tokens = auth_service.generate_tokens(user)

        response = auth_client.post('/api/v1/auth/logout', {'refreshToken': tokens['refreshToken']}, format='json')

        assert response.status_code == 200
        with pytest.raises(NotAuthenticated):
            auth_service.refresh_access_token(tokens['refreshToken'])

    def test_api_key_scopes(self, auth_client, api_client):
        response = auth_client.post('/api/v1/auth/api-keys', {
            'name': 'reader', 'scopes': ['read'],
        }, format='json')
        assert response.status_code == 201
        key = response.json()['api_key']

        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {key}')
        me = api_client.get('/api/v1/auth/me').json()
        assert me['scopes'] == ['read']

        nested = api_client.post('/api/v1/auth/api-keys', {'name': 'again'}, format='json')
        assert nested.status_code == 403

    def test_unknown_scope_rejected(self, user):
        with pytest.raises(ValidationFailed):
            jwt_service.generate_api_key(user, scopes=['root'])

    def test_has_scope(self):
        assert jwt_service.has_scope({'scopes': []}, 'stories:write')
        assert jwt_service.has_scope({'scopes': ['all']}, 'messages')
        assert jwt_service.has_scope({'scopes': ['write']}, 'stories:write')
        assert not jwt_service.has_scope({'scopes': ['read']}, 'stories:write')
        assert not jwt_service.has_scope({'scopes': ['read']}, 'votes')


@pytest.mark.django_db
class TestPasswords:

    def test_change_password_revokes_sessions(self, auth_client, user):
        tokens = auth_service.generate_tokens(user)

        response = auth_client.post('/api/v1/auth/password/change', {
            'current_password': PASSWORD,
            'new_password': 'an-even-better-one',
        }, format='json')

        assert response.status_code == 200
        user.refresh_from_db()
        assert user.check_password('an-even-better-one')
        assert RefreshToken.objects.get(token=tokens['refreshToken']).is_revoked

    def test_change_password_checks_current(self, user):
        with pytest.raises(ValidationFailed):
            auth_service.change_password(user, 'wrong-password', 'an-even-better-one')

    def test_reset_flow(self, api_client, user):
        response = api_client.post('/api/v1/auth/password/forgot', {'email': 'alice@example.com'}, format='json')

        assert response.status_code == 200
        assert len(mail.outbox) == 1
        token = mail.outbox[0].body.split('token=')[1].split()[0]

        reset = api_client.post('/api/v1/auth/password/reset', {
            'token': token, 'password': 'brand-new-password',
        }, format='json')

        assert reset.status_code == 200
        user.refresh_from_db()
        assert user.check_password('brand-new-password')

        again = api_client.post('/api/v1/auth/password/reset', {
            'token': token, 'password': 'another-password',
        }, format='json')
        assert again.status_code == 400

    def test_forgot_unknown_email_is_silent(self, api_client, db):
        response = api_client.post('/api/v1/auth/password/forgot', {'email': 'nobody@example.com'}, format='json')

        assert response.status_code == 200
        assert len(mail.outbox) == 0

    def test_passwords_are_hashed(self, user):
        stored = User.objects.get(pk=user.pk).password_hash
        assert stored != PASSWORD
        assert stored.startswith('$2')
