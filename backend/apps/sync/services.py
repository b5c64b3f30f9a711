"""
Offline sync service.

Clients queue writes made while offline; the queue is replayed through the
regular services. Read-only snapshots of stories and comments are kept in the
cache so clients can fill their local store in one request.
"""

import logging
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any, List, Optional

from django.db.models import Q
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.authentication.models import User
from apps.core.exceptions import AppError, ValidationFailed
from apps.core.services import cache_service
from .models import PendingSyncAction

logger = logging.getLogger(__name__)

ACTION_TYPES = [choice for choice, _ in PendingSyncAction.TYPE_CHOICES]
CONFLICT_STRATEGIES = ('server_wins', 'local_wins', 'merge', 'latest_timestamp')


class OfflineSyncService:
    MAX_ATTEMPTS = 3
    DEFAULT_CACHE_TTL = 86400
    STORIES_TTL = 2 * 3600
    COMMENTS_TTL = 3600
    FAILED_RETENTION_DAYS = 7
    LAST_SYNC_TTL = 30 * 86400

    def serialize(self, action: PendingSyncAction) -> dict:
        return {
            'action_id': action.action_id,
            'type': action.type,
            'data': action.data,
            'status': action.status,
            'attempts': action.attempts,
            'last_error': action.last_error,
            'created_at': action.created_at.isoformat() if action.created_at else None,
        }

    def queue_action(self, user: User, type: str, data: dict, online: bool = False) -> dict:
        """
        Queue an action, running it right away when the client is online.
        """
        if type not in ACTION_TYPES:
            raise ValidationFailed(f'Unknown action type: {type}', details={'types': ACTION_TYPES})
        if not isinstance(data, dict):
            raise ValidationFailed('Action data must be an object')

        action = PendingSyncAction.objects.create(user=user, type=type, data=data)
        logger.debug(f'Queued {type} action {action.action_id} for {user.username}')

        if online:
            self._attempt(action)
        return self.serialize(action)

    def _execute(self, action: PendingSyncAction) -> dict:
        from apps.comments.services import comment_service
        from apps.stories.services import story_service
        from apps.votes.services import vote_service

        user = action.user
        data = action.data

        def vote_value():
            direction = data.get('direction')
            if direction in ('up', 'down'):
                return 1 if direction == 'up' else -1
            return data.get('value')

        if action.type == 'create_comment':
            story = story_service.get_story_by_short_id(data.get('story', ''))
            comment = comment_service.create_comment(user, story, data.get('comment', ''), data.get('parent'))
            return {'comment': comment.short_id}

        if action.type == 'vote_story':
            story = story_service.get_story_by_short_id(data.get('story', ''))
            return vote_service.vote_on_story(user, story, vote_value(), data.get('reason', ''))

        if action.type == 'vote_comment':
            comment = comment_service.get_by_short_id(data.get('comment', ''))
            return vote_service.vote_on_comment(user, comment, vote_value(), data.get('reason', ''))

        if action.type == 'flag_comment':
            comment = comment_service.get_by_short_id(data.get('comment', ''))
            return {'flags': comment_service.flag_comment(comment, user, data.get('reason', ''))}

        if action.type == 'create_story':
            story = story_service.create_story(
                user,
                data.get('title', ''),
                url=data.get('url') or None,
                description=data.get('description', ''),
                tags=data.get('tags', []),
                user_is_author=bool(data.get('user_is_author', False)),
            )
            return {'story': story.short_id}

        raise ValidationFailed(f'Unknown action type: {action.type}')

    def _attempt(self, action: PendingSyncAction) -> Optional[str]:
        """
        Run one action. Returns the error message, or None on success.
        """
        try:
            self._execute(action)
        except AppError as e:
            error = e.message
        except Exception as e:
            logger.exception(f'Sync action {action.action_id} crashed')
            error = str(e) or e.__class__.__name__
        else:
            action.delete()
            action.status = 'completed'
            logger.info(f'Synced {action.type} action {action.action_id}')
            return None

        action.attempts += 1
        action.last_error = error
        if action.attempts >= self.MAX_ATTEMPTS:
            action.status = 'failed'
        action.save(update_fields=['attempts', 'last_error', 'status', 'updated_at'])
        logger.warning(f'Sync action {action.action_id} failed (attempt {action.attempts}): {error}')
        return error

    def sync_pending_actions(self, user: Optional[User] = None) -> dict:
        """
        Replay pending actions, for one user or for everyone.

        Returns:
            Dictionary with synced and failed counts and the error messages
        """
        actions = PendingSyncAction.objects.select_related('user').filter(status='pending')
        if user is not None:
            actions = actions.filter(user=user)

        # Leftovers that reached the limit without being marked
        actions.filter(attempts__gte=self.MAX_ATTEMPTS).update(status='failed')

        result = {'synced': 0, 'failed': 0, 'errors': []}
        for action in actions.filter(attempts__lt=self.MAX_ATTEMPTS).order_by('created_at'):
            error = self._attempt(action)
            if error is None:
                result['synced'] += 1
            else:
                result['failed'] += 1
                result['errors'].append({'action_id': action.action_id, 'type': action.type, 'error': error})

        if user is not None:
            self._touch_last_sync(user)
        return result

    def _last_sync_key(self, user: User) -> str:
        return f'sync:{user.id}:last_sync'

    def _touch_last_sync(self, user: User) -> None:
        cache_service.set(self._last_sync_key(user), timezone.now().isoformat(), self.LAST_SYNC_TTL)

    def status(self, user: User) -> dict:
        actions = PendingSyncAction.objects.filter(user=user)
        return {
            'pending': actions.filter(status='pending').count(),
            'failed': actions.filter(status='failed').count(),
            'last_sync': cache_service.get(self._last_sync_key(user)),
            'failed_actions': [
                self.serialize(action) for action in actions.filter(status='failed').order_by('-updated_at')[:20]
            ],
        }

    def _user_key(self, user: User, key: str) -> str:
        key = (key or '').strip()
        if not key or len(key) > 100:
            raise ValidationFailed('Cache key must be between 1 and 100 characters')
        return f'sync:{user.id}:data:{key}'

    def _wrap(self, data: Any, ttl: int) -> dict:
        now = timezone.now()
        return {
            'data': data,
            'cached_at': now.isoformat(),
            'expires_at': (now + timedelta(seconds=ttl)).isoformat(),
        }

    def _unwrap(self, entry: Optional[dict]) -> Optional[Any]:
        if not entry:
            return None
        expires_at = parse_datetime(entry.get('expires_at') or '')
        if expires_at is not None and expires_at <= timezone.now():
            return None
        return entry['data']

    def cache_data(self, user: User, key: str, data: Any, ttl: int = DEFAULT_CACHE_TTL) -> dict:
        if ttl < 1:
            raise ValidationFailed('ttl must be positive')
        entry = self._wrap(data, ttl)
        cache_service.set(self._user_key(user, key), entry, ttl)
        return {'key': key, 'cached_at': entry['cached_at'], 'expires_at': entry['expires_at']}

    def get_cached_data(self, user: User, key: str) -> Optional[Any]:
        return self._unwrap(cache_service.get(self._user_key(user, key)))

    def cache_stories(self, stories: List) -> int:
        from apps.stories.serializers import StorySerializer

        data = StorySerializer(stories, many=True).data
        cache_service.set('sync:stories', self._wrap(list(data), self.STORIES_TTL), self.STORIES_TTL)
        return len(data)

    def get_cached_stories(self, limit: int = 50) -> Optional[list]:
        stories = self._unwrap(cache_service.get('sync:stories'))
        return stories[:limit] if stories is not None else None

    def cache_comments(self, story, comments: List) -> int:
        from apps.comments.serializers import CommentSerializer

        data = CommentSerializer(comments, many=True).data
        cache_service.set(
            f'sync:comments:{story.id}', self._wrap(list(data), self.COMMENTS_TTL), self.COMMENTS_TTL
        )
        return len(data)

    def get_cached_comments(self, story) -> Optional[list]:
        return self._unwrap(cache_service.get(f'sync:comments:{story.id}'))

    def cleanup_expired(self) -> int:
        """
        Delete completed actions and failed actions past retention.
        """
        cutoff = timezone.now() - timedelta(days=self.FAILED_RETENTION_DAYS)
        deleted, _ = PendingSyncAction.objects.filter(
            Q(status='completed') | Q(status='failed', updated_at__lt=cutoff)
        ).delete()
        return deleted

    def _timestamp(self, value) -> Optional[datetime]:
        try:
            parsed = parse_datetime(str(value or ''))
        except ValueError:
            return None
        if parsed is not None and timezone.is_naive(parsed):
            parsed = parsed.replace(tzinfo=dt_timezone.utc)
        return parsed

    def resolve_conflict(self, local: dict, server: dict, strategy: str = 'server_wins') -> dict:
        local = local or {}
        server = server or {}

        if strategy == 'server_wins':
            return server
        if strategy == 'local_wins':
            return local
        if strategy == 'merge':
            return {**server, **local}
        if strategy == 'latest_timestamp':
            local_time = self._timestamp(local.get('updated_at'))
            server_time = self._timestamp(server.get('updated_at'))
            if server_time is not None and (local_time is None or server_time > local_time):
                return server
            return local

        raise ValidationFailed(
            f'Unknown conflict strategy: {strategy}',
            details={'strategies': list(CONFLICT_STRATEGIES)},
        )


# Create singleton instance
offline_sync_service = OfflineSyncService()
