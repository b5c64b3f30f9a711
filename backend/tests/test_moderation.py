"""
Tests for moderator actions, bans and the public moderation log.
"""

import pytest

from apps.authentication.models import RefreshToken
from apps.authentication.services import auth_service
from apps.comments.services import comment_service
from apps.core.exceptions import Forbidden, NotFound, ValidationFailed
from apps.moderation.models import Moderation
from apps.moderation.services import moderation_service
from apps.stories.services import story_service
from apps.votes.services import vote_service


@pytest.mark.django_db
class TestPermissions:

    @pytest.mark.parametrize('path', [
        '/api/v1/moderation/flagged',
        '/api/v1/moderation/stats',
    ])
    def test_regular_users_are_forbidden(self, auth_client, path):
        response = auth_client.get(path)

        assert response.status_code == 403
        assert response.json()['error']['code'] == 'FORBIDDEN'

    def test_log_is_public(self, api_client, db):
        response = api_client.get('/api/v1/moderation/log')

        assert response.status_code == 200
        assert response.json() == {'log': []}


@pytest.mark.django_db
class TestStoryModeration:

    def test_delete_via_api(self, client_for, moderator, user, make_story):
        story = make_story(user)

        response = client_for(moderator).post(
            f'/api/v1/moderation/stories/{story.short_id}', {'action': 'delete', 'reason': 'Off topic'}, format='json'
        )

        assert response.status_code == 200
        with pytest.raises(NotFound):
            story_service.get_story_by_short_id(story.short_id)

        entry = Moderation.objects.get()
        assert (entry.action, entry.subject_type, entry.reason) == ('delete', 'story', 'Off topic')
        assert entry.target_user == user

        notification = user.notifications.get(type='moderation')
        assert notification.priority == 'high'

    def test_flag_unflag_approve(self, moderator, user, make_story):
        story = make_story(user)

        moderation_service.moderate_story(story, moderator, 'flag')
        moderation_service.moderate_story(story, moderator, 'FLAG')
        assert story.flags == 2
        moderation_service.moderate_story(story, moderator, 'unflag')
        assert story.flags == 1
        moderation_service.moderate_story(story, moderator, 'approve')

        story.refresh_from_db()
        assert story.flags == 0
        assert story.is_moderated
        assert Moderation.objects.count() == 4

    def test_unflag_never_goes_negative(self, moderator, user, make_story):
        story = make_story(user)
        moderation_service.moderate_story(story, moderator, 'unflag')
        assert story.flags == 0

    def test_unknown_action(self, moderator, user, make_story):
        with pytest.raises(ValidationFailed):
            moderation_service.moderate_story(make_story(user), moderator, 'explode')

    def test_merge(self, client_for, moderator, user, make_story):
        source = make_story(user, title='Dup')
        target = make_story(user, title='Original')

        response = client_for(moderator).post(
            f'/api/v1/moderation/stories/{source.short_id}/merge', {'target': target.short_id}, format='json'
        )

        assert response.json() == {'merged': source.short_id, 'into': target.short_id}
        assert story_service.get_story_by_short_id(source.short_id).id == target.id
        assert Moderation.objects.get().metadata == {'target': target.short_id}
        assert source.id not in [s.id for s in story_service.get_stories(sort='newest')]

    def test_merge_chains_are_flattened(self, moderator, user, make_story):
        first = make_story(user)
        second = make_story(user)
        third = make_story(user)

        moderation_service.merge_stories(first, second, moderator)
        moderation_service.merge_stories(second, third, moderator)

        first.refresh_from_db()
        assert first.merged_story_id == third.id

    def test_merge_into_self_or_merged(self, moderator, user, make_story):
        story = make_story(user)
        merged = make_story(user)
        moderation_service.merge_stories(merged, make_story(user), moderator)

        with pytest.raises(ValidationFailed):
            moderation_service.merge_stories(story, story, moderator)
        with pytest.raises(ValidationFailed):
            moderation_service.merge_stories(story, merged, moderator)


@pytest.mark.django_db
class TestCommentModeration:

    def test_delete_via_api(self, client_for, moderator, user, other_user, make_story):
        story = make_story(user)
        comment = comment_service.create_comment(other_user, story, 'Spam spam spam')

        response = client_for(moderator).post(
            f'/api/v1/moderation/comments/{comment.short_id}', {'action': 'delete'}, format='json'
        )

        assert response.status_code == 200
        comment.refresh_from_db()
        story.refresh_from_db()
        assert comment.is_deleted
        assert comment.comment == '[deleted]'
        assert story.comments_count == 0
        assert other_user.notifications.filter(type='moderation').exists()

    def test_moderator_flag_survives_later_votes(self, moderator, user, other_user, make_story):
        comment = comment_service.create_comment(user, make_story(user), 'Borderline')

        moderation_service.moderate_comment(comment, moderator, 'flag')
        vote_service.vote_on_comment(other_user, comment, 1)

        comment.refresh_from_db()
        assert comment.flags == 1
        assert comment.upvotes == 2

    def test_approve_survives_later_votes(self, moderator, user, other_user, make_user, make_story):
        comment = comment_service.create_comment(user, make_story(user), 'Borderline')
        comment_service.flag_comment(comment, other_user, 'T')

        moderation_service.moderate_comment(comment, moderator, 'approve')
        vote_service.vote_on_comment(make_user(), comment, 1)
        comment.refresh_from_db()
        assert comment.flags == 0
        assert comment.is_moderated

        comment_service.flag_comment(comment, make_user(), 'S')
        comment.refresh_from_db()
        assert comment.flags == 1

    def test_comment_unflag_floor(self, moderator, user, other_user, make_story):
        comment = comment_service.create_comment(user, make_story(user), 'Borderline')
        comment_service.flag_comment(comment, other_user, 'T')

        moderation_service.moderate_comment(comment, moderator, 'unflag')
        moderation_service.moderate_comment(comment, moderator, 'unflag')
        assert comment.flags == 0

        moderation_service.moderate_comment(comment, moderator, 'flag')
        comment.refresh_from_db()
        assert comment.flags == 1

    def test_flagged_queue(self, client_for, moderator, user, other_user, make_story):
        story = make_story(user)
        quiet = comment_service.create_comment(user, story, 'Fine comment')
        noisy = comment_service.create_comment(user, story, 'Questionable comment')
        comment_service.flag_comment(noisy, other_user, 'T')

        body = client_for(moderator).get('/api/v1/moderation/flagged').json()

        assert [c['short_id'] for c in body['comments']] == [noisy.short_id]
        assert quiet.short_id not in [c['short_id'] for c in body['comments']]
        assert body['stories'] == []

    def test_low_score_needs_review(self, moderator, user, make_user, make_story):
        story = make_story(user)
        for _ in range(7):
            vote_service.vote_on_story(make_user(), story, -1)

        flagged = moderation_service.flagged_content()
        assert [s.id for s in flagged['stories']] == [story.id]


@pytest.mark.django_db
class TestBans:

    def test_ban_via_api(self, client_for, moderator, user):
        tokens = auth_service.generate_tokens(user)

        response = client_for(moderator).post(
            '/api/v1/moderation/users/alice/ban', {'reason': 'Spam', 'duration_days': 7}, format='json'
        )

        assert response.status_code == 200
        assert response.json()['banned_until'] is not None
        user.refresh_from_db()
        assert user.is_banned
        assert user.banned_by == moderator
        assert RefreshToken.objects.get(token=tokens['refreshToken']).is_revoked

        entry = Moderation.objects.get()
        assert (entry.action, entry.subject_type) == ('ban', 'user')
        assert entry.metadata == {'duration_days': 7}

    def test_banned_token_is_rejected(self, client_for, moderator, user):
        client = client_for(user)
        moderation_service.ban_user(user, moderator, 'Spam')

        assert client.get('/api/v1/auth/me').status_code == 401

    def test_ban_requires_reason(self, client_for, moderator, user):
        response = client_for(moderator).post('/api/v1/moderation/users/alice/ban', {}, format='json')
        assert response.status_code == 400

    def test_cannot_ban_self(self, moderator):
        with pytest.raises(ValidationFailed):
            moderation_service.ban_user(moderator, moderator, 'Oops')

    def test_only_admins_ban_staff(self, moderator, make_user):
        other_mod = make_user('mod2', is_moderator=True)
        admin = make_user('root', is_admin=True)

        with pytest.raises(Forbidden):
            moderation_service.ban_user(other_mod, moderator, 'Rogue')
        moderation_service.ban_user(other_mod, admin, 'Rogue')
        other_mod.refresh_from_db()
        assert other_mod.is_banned

    def test_unban(self, client_for, moderator, user):
        moderation_service.ban_user(user, moderator, 'Spam')

        response = client_for(moderator).post('/api/v1/moderation/users/alice/unban', {'reason': 'Appeal'}, format='json')

        assert response.json() == {'username': 'alice', 'banned': False}
        user.refresh_from_db()
        assert not user.is_banned
        assert user.banned_reason == ''
        assert user.notifications.filter(type='moderation').exists()

    def test_unban_requires_ban(self, moderator, user):
        with pytest.raises(ValidationFailed):
            moderation_service.unban_user(user, moderator)


@pytest.mark.django_db
class TestLogAndStats:

    def test_log_filters(self, api_client, moderator, user, make_user, make_story):
        other_mod = make_user('mod2', is_moderator=True)
        story = make_story(user)
        moderation_service.moderate_story(story, moderator, 'flag')
        moderation_service.ban_user(user, other_mod, 'Spam')

        everything = api_client.get('/api/v1/moderation/log').json()['log']
        by_mod = api_client.get('/api/v1/moderation/log', {'moderator': 'mod'}).json()['log']
        bans = api_client.get('/api/v1/moderation/log', {'subject_type': 'user'}).json()['log']

        assert [e['action'] for e in everything] == ['ban', 'flag']
        assert [e['story'] for e in by_mod] == [story.short_id]
        assert [e['target_user'] for e in bans] == ['alice']

    def test_log_unknown_moderator(self, api_client, db):
        assert api_client.get('/api/v1/moderation/log', {'moderator': 'ghost'}).status_code == 404

    def test_stats(self, client_for, moderator, user, make_story):
        story = make_story(user)
        moderation_service.moderate_story(story, moderator, 'flag')
        moderation_service.ban_user(user, moderator, 'Spam')

        stats = client_for(moderator).get('/api/v1/moderation/stats').json()

        assert stats['total_actions'] == 2
        assert stats['actions_24h'] == 2
        assert stats['flagged_stories'] == 1
        assert stats['banned_users'] == 1
        assert stats['top_moderators'] == [{'username': 'mod', 'actions': 2}]
