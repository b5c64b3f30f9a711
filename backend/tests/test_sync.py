"""
Tests for the offline action queue, cached snapshots and conflict resolution.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.comments.models import Comment
from apps.comments.services import comment_service
from apps.core.exceptions import ValidationFailed
from apps.core.services import cache_service
from apps.stories.models import Story
from apps.sync.models import PendingSyncAction
from apps.sync.services import offline_sync_service
from apps.sync.tasks import cleanup_sync_data, process_pending_sync_actions
from apps.votes.models import Vote


@pytest.mark.django_db
class TestQueue:

    def test_queue_offline(self, auth_client, user, make_story):
        story = make_story(user)

        response = auth_client.post('/api/v1/sync/queue', {
            'type': 'create_comment',
            'data': {'story': story.short_id, 'comment': 'Written on a plane'},
        }, format='json')

        assert response.status_code == 201
        action = response.json()['action']
        assert action['status'] == 'pending'
        assert action['action_id'].startswith('action_')
        assert not Comment.objects.exists()

    def test_queue_online_runs_immediately(self, user, other_user, make_story):
        story = make_story(user)

        action = offline_sync_service.queue_action(
            other_user, 'vote_story', {'story': story.short_id, 'direction': 'up'}, online=True
        )

        assert action['status'] == 'completed'
        assert Vote.objects.filter(user=other_user, story=story).exists()
        assert not PendingSyncAction.objects.exists()

    def test_unknown_type(self, user):
        with pytest.raises(ValidationFailed):
            offline_sync_service.queue_action(user, 'delete_everything', {})

    def test_unknown_type_via_api(self, auth_client):
        response = auth_client.post('/api/v1/sync/queue', {'type': 'nope', 'data': {}}, format='json')
        assert response.status_code == 400


@pytest.mark.django_db
class TestProcessing:

    def test_replay_all_action_types(self, client_for, user, other_user, make_story):
        story = make_story(user)
        comment = comment_service.create_comment(user, story, 'Original thoughts')
        offline_sync_service.queue_action(other_user, 'create_comment', {
            'story': story.short_id, 'comment': 'Reply from the train', 'parent': comment.short_id,
        })
        offline_sync_service.queue_action(other_user, 'vote_story', {'story': story.short_id, 'value': 1})
        offline_sync_service.queue_action(other_user, 'vote_comment', {'comment': comment.short_id, 'direction': 'up'})
        offline_sync_service.queue_action(other_user, 'create_story', {
            'title': 'Offline first apps', 'url': 'https://example.org/offline', 'tags': ['web'],
        })

        response = client_for(other_user).post('/api/v1/sync/process')

        assert response.json() == {'synced': 4, 'failed': 0, 'errors': []}
        assert Comment.objects.filter(parent_comment=comment, user=other_user).exists()
        assert Story.objects.filter(title='Offline first apps', user=other_user).exists()
        comment.refresh_from_db()
        assert comment.upvotes == 2

        status = client_for(other_user).get('/api/v1/sync/status').json()
        assert status['pending'] == 0
        assert status['last_sync'] is not None

    def test_flag_action(self, user, other_user, make_story):
        comment = comment_service.create_comment(user, make_story(user), 'Dubious')
        offline_sync_service.queue_action(other_user, 'flag_comment', {'comment': comment.short_id, 'reason': 'S'})

        assert offline_sync_service.sync_pending_actions(other_user)['synced'] == 1
        comment.refresh_from_db()
        assert comment.flags == 1

    def test_failures_are_retried_then_marked_failed(self, user):
        action = offline_sync_service.queue_action(user, 'vote_story', {'story': 'gone00', 'value': 1})

        for _ in range(3):
            result = offline_sync_service.sync_pending_actions(user)
            assert result['failed'] == 1
            assert result['errors'][0]['action_id'] == action['action_id']

        stored = PendingSyncAction.objects.get(action_id=action['action_id'])
        assert stored.status == 'failed'
        assert stored.attempts == 3
        assert stored.last_error == 'Story not found'

        assert offline_sync_service.sync_pending_actions(user) == {'synced': 0, 'failed': 0, 'errors': []}
        status = offline_sync_service.status(user)
        assert status['failed'] == 1
        assert status['failed_actions'][0]['action_id'] == action['action_id']

    def test_processing_is_per_user(self, user, other_user, make_story):
        story = make_story(user)
        offline_sync_service.queue_action(other_user, 'vote_story', {'story': story.short_id, 'value': 1})

        assert offline_sync_service.sync_pending_actions(user)['synced'] == 0
        assert PendingSyncAction.objects.count() == 1

    def test_periodic_task_covers_everyone(self, user, other_user, make_story, make_user):
        story = make_story(user)
        offline_sync_service.queue_action(other_user, 'vote_story', {'story': story.short_id, 'value': 1})
        offline_sync_service.queue_action(make_user(), 'vote_story', {'story': story.short_id, 'value': 1})

        assert process_pending_sync_actions() == {'synced': 2, 'failed': 0}


@pytest.mark.django_db
class TestCachedData:

    def test_cache_and_read(self, auth_client):
        response = auth_client.post('/api/v1/sync/cache', {
            'key': 'drafts', 'data': {'title': 'Half written'},
        }, format='json')

        assert response.status_code == 201
        assert set(response.json()) == {'key', 'cached_at', 'expires_at'}
        assert auth_client.get('/api/v1/sync/cache/drafts').json() == {
            'key': 'drafts', 'data': {'title': 'Half written'},
        }

    def test_keys_are_per_user(self, user, other_user):
        offline_sync_service.cache_data(user, 'drafts', [1, 2, 3])
        assert offline_sync_service.get_cached_data(other_user, 'drafts') is None

    def test_missing_key(self, auth_client):
        assert auth_client.get('/api/v1/sync/cache/nothing').status_code == 404

    def test_expired_entry_is_ignored(self, user):
        offline_sync_service.cache_data(user, 'drafts', 'soon gone', ttl=60)
        key = offline_sync_service._user_key(user, 'drafts')
        entry = offline_sync_service._wrap('soon gone', 60)
        entry['expires_at'] = (timezone.now() - timedelta(seconds=1)).isoformat()

        cache_service.set(key, entry, 60)

        assert offline_sync_service.get_cached_data(user, 'drafts') is None

    def test_story_and_comment_snapshots(self, auth_client, user, make_story):
        story = make_story(user, title='Snapshot me')
        comment_service.create_comment(user, story, 'Snapshot this too')

        assert auth_client.get('/api/v1/sync/stories/cached').json() == {'cached': False, 'stories': []}

        assert auth_client.post('/api/v1/sync/stories/cache').json() == {'cached': 1}
        cached = auth_client.get('/api/v1/sync/stories/cached').json()
        assert cached['cached'] is True
        assert cached['stories'][0]['title'] == 'Snapshot me'

        auth_client.post(f'/api/v1/sync/stories/{story.short_id}/comments/cache')
        comments = auth_client.get(f'/api/v1/sync/stories/{story.short_id}/comments/cached').json()
        assert comments['cached'] is True
        assert comments['comments'][0]['comment'] == 'Snapshot this too'


@pytest.mark.django_db
class TestConflictsAndCleanup:

    local = {'title': 'Local', 'note': 'mine', 'updated_at': '2024-05-02T10:00:00Z'}
    server = {'title': 'Server', 'votes': 3, 'updated_at': '2024-05-01T10:00:00Z'}

    @pytest.mark.parametrize('strategy,expected', [
        ('server_wins', 'Server'),
        ('local_wins', 'Local'),
        ('merge', 'Local'),
        ('latest_timestamp', 'Local'),
    ])
    def test_strategies(self, strategy, expected):
        resolved = offline_sync_service.resolve_conflict(self.local, self.server, strategy)
        assert resolved['title'] == expected

    def test_merge_keeps_both_sides(self):
        resolved = offline_sync_service.resolve_conflict(self.local, self.server, 'merge')
        assert resolved['votes'] == 3
        assert resolved['note'] == 'mine'

    def test_latest_timestamp_prefers_newer_server(self):
        server = dict(self.server, updated_at='2024-06-01T00:00:00')
        assert offline_sync_service.resolve_conflict(self.local, server, 'latest_timestamp') == server

    def test_unknown_strategy(self):
        with pytest.raises(ValidationFailed):
            offline_sync_service.resolve_conflict({}, {}, 'coin_flip')

    def test_resolve_via_api(self, auth_client):
        response = auth_client.post('/api/v1/sync/resolve-conflict', {
            'local': self.local, 'server': self.server,
        }, format='json')

        assert response.json() == {'strategy': 'server_wins', 'resolved': self.server}

    def test_cleanup_removes_old_failures(self, user):
        old = PendingSyncAction.objects.create(user=user, type='vote_story', data={}, status='failed')
        recent = PendingSyncAction.objects.create(user=user, type='vote_story', data={}, status='failed')
        pending = PendingSyncAction.objects.create(user=user, type='vote_story', data={})
        PendingSyncAction.objects.filter(id=old.id).update(updated_at=timezone.now() - timedelta(days=8))

        assert cleanup_sync_data() == 1
        assert set(PendingSyncAction.objects.values_list('id', flat=True)) == {recent.id, pending.id}

    def test_cleanup_endpoint_requires_moderator(self, auth_client, client_for, moderator):
        assert auth_client.post('/api/v1/sync/cleanup').status_code == 403
        assert client_for(moderator).post('/api/v1/sync/cleanup').json() == {'deleted': 0}
