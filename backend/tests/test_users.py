"""
Tests for profiles, settings, tag preferences, follows and karma.
"""

import pytest

from apps.core.exceptions import Conflict, NotFound, ValidationFailed
from apps.stories.services import story_service
from apps.users.models import UserFollow
from apps.users.services import user_service
from apps.votes.services import vote_service


@pytest.mark.django_db
class TestProfiles:

    def test_profile_via_api(self, api_client, user, make_story):
        make_story(user, title='First post')

        response = api_client.get('/api/v1/users/ALICE')

        assert response.status_code == 200
        body = response.json()
        assert body['user']['username'] == 'alice'
        assert body['user']['story_count'] == 1
        assert body['is_following'] is False
        assert [s['title'] for s in body['stories']] == ['First post']

    def test_unknown_user(self, api_client, db):
        response = api_client.get('/api/v1/users/ghost')
        assert response.status_code == 404
        assert response.json()['error']['code'] == 'NOT_FOUND'

    def test_list_orders(self, api_client, user, other_user, make_user):
        newest = make_user('zed', karma=5)

        by_karma = api_client.get('/api/v1/users').json()['users']
        by_date = api_client.get('/api/v1/users', {'order': 'newest'}).json()['users']

        assert [u['username'] for u in by_karma] == ['alice', 'bob', 'zed']
        assert by_date[0]['username'] == newest.username
        assert api_client.get('/api/v1/users', {'order': 'loud'}).status_code == 400


@pytest.mark.django_db
class TestSettings:

    def test_read_and_update(self, auth_client):
        response = auth_client.put('/api/v1/settings', {
            'about': 'I write compilers',
            'homepage': 'https://alice.dev',
            'show_avatars': False,
            'allow_messages_from': 'followed_users',
            'karma': 9999,
        }, format='json')

        assert response.status_code == 200
        settings = auth_client.get('/api/v1/settings').json()['settings']
        assert settings['about'] == 'I write compilers'
        assert settings['homepage'] == 'https://alice.dev'
        assert settings['show_avatars'] is False
        assert settings['allow_messages_from'] == 'followed_users'
        assert 'karma' not in settings

    def test_unknown_fields_are_ignored(self, user):
        user_service.update_settings(user, {'karma': 9999, 'is_admin': True})
        user.refresh_from_db()
        assert user.karma == 50
        assert user.is_admin is False

    def test_invalid_homepage(self, user):
        with pytest.raises(ValidationFailed):
            user_service.update_settings(user, {'homepage': 'javascript:alert(1)'})

    def test_invalid_message_preference(self, user):
        with pytest.raises(ValidationFailed):
            user_service.update_settings(user, {'allow_messages_from': 'martians'})

    def test_email_must_be_unique(self, user, other_user):
        with pytest.raises(Conflict):
            user_service.update_settings(user, {'email': 'BOB@example.com'})

    def test_profile_cache_is_invalidated(self, user):
        assert user_service.profile(user)['about'] == ''
        user_service.update_settings(user, {'about': 'Hello'})
        assert user_service.profile(user)['about'] == 'Hello'


@pytest.mark.django_db
class TestTagPreferences:

    def test_update_via_api(self, auth_client):
        response = auth_client.put('/api/v1/settings/tags', {
            'filtered': ['Crypto', 'crypto', 'ads!'],
            'favorite': ['rust'],
        }, format='json')

        assert response.status_code == 200
        assert response.json() == {'filtered_tags': ['crypto', 'ads'], 'favorite_tags': ['rust']}

    def test_listing_applies_preferences(self, user, other_user, make_story):
        plain = make_story(user, title='Plain story')
        favored = make_story(user, title='Rust story', tags=['rust'])
        make_story(user, title='Coin story', tags=['crypto'])
        user_service.update_tag_preferences(other_user, filtered=['crypto'], favorite=['rust'])

        stories = story_service.get_stories(sort='newest', viewer=other_user)

        assert [s.id for s in stories] == [favored.id, plain.id]

    def test_apply_preferences_keeps_order_for_anonymous(self, user, make_story):
        stories = [make_story(user), make_story(user)]
        assert user_service.apply_tag_preferences(stories, None) == stories


@pytest.mark.django_db
class TestFollowing:

    def test_follow_and_unfollow(self, auth_client, user, other_user):
        response = auth_client.post('/api/v1/users/bob/follow')

        assert response.json() == {'following': True}
        assert user_service.is_following(user, other_user)
        assert user_service.profile(other_user)['follower_count'] == 1
        notification = other_user.notifications.get()
        assert notification.type == 'follow'
        assert notification.priority == 'low'

        response = auth_client.delete('/api/v1/users/bob/follow')

        assert response.json() == {'following': False}
        assert not UserFollow.objects.exists()
        assert user_service.profile(other_user)['follower_count'] == 0

    def test_follow_twice_notifies_once(self, user, other_user):
        user_service.follow(user, 'bob')
        user_service.follow(user, 'bob')

        assert UserFollow.objects.count() == 1
        assert other_user.notifications.count() == 1

    def test_cannot_follow_self(self, user):
        with pytest.raises(ValidationFailed):
            user_service.follow(user, 'alice')

    def test_follow_unknown_user(self, user):
        with pytest.raises(NotFound):
            user_service.follow(user, 'ghost')

    def test_anonymous_is_not_following(self, other_user):
        assert user_service.is_following(None, other_user) is False


@pytest.mark.django_db
class TestKarma:

    def test_calculate_from_votes(self, user, other_user, make_user, make_story):
        story = make_story(user)
        vote_service.vote_on_story(other_user, story, 1)
        vote_service.vote_on_story(make_user(), story, 1)

        # the author's own vote does not count
        assert user_service.calculate_karma(user) == 3
        assert user_service.calculate_karma(other_user) == 1

    def test_recalculate_all(self, user, other_user, make_story):
        story = make_story(user)
        vote_service.vote_on_story(other_user, story, 1)

        changed = user_service.recalculate_all_karma()

        user.refresh_from_db()
        other_user.refresh_from_db()
        assert changed == 2
        assert user.karma == 2
        assert other_user.karma == 1
        assert user_service.recalculate_all_karma() == 0

    def test_activity_mixes_stories_and_comments(self, user, make_story):
        from apps.comments.services import comment_service

        story = make_story(user)
        comment_service.create_comment(user, story, 'A note')

        activity = user_service.user_activity(user)
        assert [entry['type'] for entry in activity] == ['comment', 'story']
