"""
Shared fixtures for the backend test suite.
"""

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.authentication.models import User
from apps.authentication.services import jwt_service
from apps.core.services import rate_limit_service


@pytest.fixture(autouse=True)
def clear_cache():
    """Rate limit counters and cached listings never leak between tests."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def _make_user(username=None, karma=1, **fields):
        counter['n'] += 1
        username = username or f'user{counter["n"]}'
        user = User(username=username, email=f'{username}@example.com', karma=karma, **fields)
        user.set_password('correct-horse-battery')
        user.save()
        return user

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user('alice', karma=50)


@pytest.fixture
def other_user(make_user):
    return make_user('bob', karma=20)


@pytest.fixture
def moderator(make_user):
    return make_user('mod', karma=100, is_moderator=True)


@pytest.fixture
def make_story(db):
    from apps.stories.services import story_service

    counter = {'n': 0}

    def _make_story(user, title=None, url='auto', description='', tags=None, **kwargs):
        counter['n'] += 1
        if url == 'auto':
            url = f'https://example.com/articles/{counter["n"]}'
        story = story_service.create_story(
            user, title or f'Story number {counter["n"]}', url=url,
            description=description, tags=tags, **kwargs,
        )
        rate_limit_service.reset_limit('story_submission', f'user:{user.id}')
        return story

    return _make_story


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {jwt_service.generate_access_token(user)}')
    return client


@pytest.fixture
def client_for():
    def _client_for(some_user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {jwt_service.generate_access_token(some_user)}')
        return client

    return _client_for
