"""
Moderation service.

Every moderator action is written to the public moderation log and the
affected author is notified.
"""

import logging
from datetime import timedelta
from typing import List, Optional

from django.db.models import Count, F, Q
from django.utils import timezone

from apps.authentication.models import User
from apps.authentication.services import auth_service
from apps.comments.models import Comment
from apps.core.exceptions import Forbidden, ValidationFailed
from apps.core.services import cache_service
from apps.core.utils.text import render_markdown
from apps.notifications.services import notification_service
from apps.stories.models import Story
from .models import Moderation

logger = logging.getLogger(__name__)

CONTENT_ACTIONS = ('approve', 'delete', 'flag', 'unflag')
LOW_SCORE_THRESHOLD = -5


class ModerationService:

    def log(self, moderator: Optional[User], action: str, story: Optional[Story] = None,
            comment: Optional[Comment] = None, target_user: Optional[User] = None,
            reason: str = '', metadata: Optional[dict] = None,
            is_from_suggestions: bool = False) -> Moderation:
        if comment is not None:
            subject_type, subject_id = 'comment', comment.id
            story = story or comment.story
        elif story is not None:
            subject_type, subject_id = 'story', story.id
        else:
            subject_type, subject_id = 'user', target_user.id if target_user else None

        entry = Moderation.objects.create(
            moderator=moderator,
            action=action,
            story=story,
            comment=comment,
            target_user=target_user,
            reason=reason or '',
            is_from_suggestions=is_from_suggestions,
            subject_type=subject_type,
            subject_id=subject_id,
            metadata=metadata or {},
        )
        logger.info(
            f'Moderation: {moderator.username if moderator else "system"} {action} '
            f'{subject_type} {subject_id}'
        )
        return entry

    def _check_action(self, action: str) -> str:
        action = (action or '').strip().lower()
        if action not in CONTENT_ACTIONS:
            raise ValidationFailed(
                f'Unknown moderation action: {action}',
                details={'actions': list(CONTENT_ACTIONS)},
            )
        return action

    def moderate_story(self, story: Story, moderator: User, action: str, reason: str = '') -> Story:
        action = self._check_action(action)

        if action == 'approve':
            story.is_moderated = True
            story.flags = 0
        elif action == 'delete':
            story.is_deleted = True
            story.is_moderated = True
        elif action == 'flag':
            story.flags = story.flags + 1
        else:
            story.flags = max(0, story.flags - 1)
        story.save(update_fields=['is_moderated', 'is_deleted', 'flags', 'updated_at'])

        self.log(moderator, action, story=story, target_user=story.user, reason=reason)
        notification_service.notify_moderation(
            story.user, action, 'story', reason, action_url=story.get_absolute_url()
        )
        cache_service.invalidate_story(story.id)
        return story

    def moderate_comment(self, comment: Comment, moderator: User, action: str, reason: str = '') -> Comment:
        from apps.stories.services import story_service
        from apps.votes.services import vote_service

        action = self._check_action(action)
        fields = ['is_moderated', 'flags', 'mod_flags', 'updated_at']

        # mod_flags is the moderator adjustment on top of the flag votes
        user_flags = vote_service.flag_vote_count(comment)
        comment.mod_flags = Comment.objects.values_list('mod_flags', flat=True).get(id=comment.id)
        current = max(0, user_flags + comment.mod_flags)

        if action == 'approve':
            comment.is_moderated = True
            comment.mod_flags = -user_flags
        elif action == 'delete':
            was_deleted = comment.is_deleted
            comment.is_deleted = True
            comment.is_moderated = True
            comment.comment = '[deleted]'
            comment.markdown_comment = render_markdown('[deleted]')
            fields += ['is_deleted', 'comment', 'markdown_comment']
            if not was_deleted:
                story_service.increment_comment_count(comment.story, -1)
        elif action == 'flag':
            comment.mod_flags = current + 1 - user_flags
        else:
            comment.mod_flags = max(0, current - 1) - user_flags
        comment.flags = max(0, user_flags + comment.mod_flags)
        comment.save(update_fields=fields)

        self.log(moderator, action, comment=comment, target_user=comment.user, reason=reason)
        notification_service.notify_moderation(
            comment.user, action, 'comment', reason, action_url=comment.get_absolute_url()
        )
        cache_service.invalidate_comment(comment.id, comment.story_id)
        return comment

    def merge_stories(self, source: Story, target: Story, moderator: User, reason: str = '') -> Story:
        if source.id == target.id:
            raise ValidationFailed('Cannot merge a story into itself')
        if target.merged_story_id:
            raise ValidationFailed('Target story has itself been merged')

        source.merged_story = target
        source.save(update_fields=['merged_story', 'updated_at'])
        Story.objects.filter(merged_story=source).update(merged_story=target)

        self.log(
            moderator, 'merge', story=source, target_user=source.user, reason=reason,
            metadata={'target': target.short_id},
        )
        cache_service.invalidate_story(source.id)
        cache_service.invalidate_story(target.id)
        return source

    def ban_user(self, user: User, moderator: User, reason: str, duration_days: Optional[int] = None) -> User:
        """
        Ban a user, permanently when duration_days is None.

        Raises:
            ValidationFailed: If the moderator targets themself or gives no reason
            Forbidden: If a non-admin targets a moderator or admin
        """
        if user.id == moderator.id:
            raise ValidationFailed('You cannot ban yourself')
        if user.is_staff_member and not moderator.is_admin:
            raise Forbidden('Only administrators can ban staff')
        if not (reason or '').strip():
            raise ValidationFailed('A reason is required')
        if duration_days is not None and duration_days < 1:
            raise ValidationFailed('duration_days must be positive')

        now = timezone.now()
        user.banned_at = now
        user.banned_until = now + timedelta(days=duration_days) if duration_days else None
        user.banned_reason = reason.strip()
        user.banned_by = moderator
        user.save(update_fields=['banned_at', 'banned_until', 'banned_reason', 'banned_by', 'updated_at'])

        auth_service.revoke_all_user_tokens(user.id)
        self.log(
            moderator, 'ban', target_user=user, reason=reason,
            metadata={'duration_days': duration_days},
        )
        cache_service.invalidate_user(user.id)
        return user

    def unban_user(self, user: User, moderator: User, reason: str = '') -> User:
        if user.banned_at is None:
            raise ValidationFailed('User is not banned')

        user.banned_at = None
        user.banned_until = None
        user.banned_reason = ''
        user.banned_by = None
        user.save(update_fields=['banned_at', 'banned_until', 'banned_reason', 'banned_by', 'updated_at'])

        self.log(moderator, 'unban', target_user=user, reason=reason)
        notification_service.notify_moderation(user, 'unban', 'account', reason)
        cache_service.invalidate_user(user.id)
        return user

    def flagged_content(self, limit: int = 50) -> dict:
        needs_review = Q(flags__gt=0) | Q(score__lt=LOW_SCORE_THRESHOLD)
        stories = (
            Story.objects.filter(needs_review, is_deleted=False)
            .select_related('user').order_by('-flags', 'score')[:limit]
        )
        comments = (
            Comment.objects.filter(needs_review, is_deleted=False)
            .select_related('user', 'story').order_by('-flags', 'score')[:limit]
        )
        return {'stories': list(stories), 'comments': list(comments)}

    def moderation_log(self, limit: int = 50, offset: int = 0, moderator: Optional[User] = None,
                       subject_type: Optional[str] = None) -> List[Moderation]:
        entries = Moderation.objects.select_related('moderator', 'story', 'comment', 'target_user')
        if moderator is not None:
            entries = entries.filter(moderator=moderator)
        if subject_type:
            entries = entries.filter(subject_type=subject_type)
        return list(entries.order_by('-created_at')[offset:offset + limit])

    def stats(self) -> dict:
        now = timezone.now()
        needs_review = Q(flags__gt=0) | Q(score__lt=LOW_SCORE_THRESHOLD)
        banned = User.objects.filter(banned_at__isnull=False).filter(
            Q(banned_until__isnull=True) | Q(banned_until__gt=now)
        )
        top = (
            Moderation.objects.filter(moderator__isnull=False)
            .values(username=F('moderator__username'))
            .annotate(actions=Count('id'))
            .order_by('-actions', 'username')[:5]
        )
        return {
            'total_actions': Moderation.objects.count(),
            'actions_24h': Moderation.objects.filter(created_at__gte=now - timedelta(hours=24)).count(),
            'actions_7d': Moderation.objects.filter(created_at__gte=now - timedelta(days=7)).count(),
            'flagged_stories': Story.objects.filter(needs_review, is_deleted=False).count(),
            'flagged_comments': Comment.objects.filter(needs_review, is_deleted=False).count(),
            'banned_users': banned.count(),
            'top_moderators': list(top),
        }


# Create singleton instance
moderation_service = ModerationService()
