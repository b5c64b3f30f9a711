"""
Comment service.

Creation, threading, ranking and deletion of comments.
"""

import logging
import math
from datetime import timedelta
from typing import List, Optional

from django.db import transaction
from django.utils import timezone

from apps.authentication.models import User
from apps.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from apps.core.services import cache_service, rate_limit_service
from apps.core.utils.text import generate_short_id, render_markdown
from apps.stories.models import Story
from apps.stories.services import story_service
from .models import Comment

logger = logging.getLogger(__name__)

DELETED_TEXT = '[deleted]'


class CommentService:
    MAX_LENGTH = 65535
    DUPLICATE_WINDOW_SECONDS = 30
    EDIT_WINDOW_HOURS = 6
    WILSON_Z = 1.96
    SORTS = {
        'confidence': ('-confidence', 'created_at'),
        'newest': ('-created_at',),
        'oldest': ('created_at',),
        'score': ('-score', 'created_at'),
    }

    def _generate_unique_short_id(self) -> str:
        while True:
            short_id = generate_short_id(10)
            if not Comment.objects.filter(short_id=short_id).exists():
                return short_id

    def _validate_text(self, text: str) -> str:
        text = (text or '').strip()
        if not text:
            raise ValidationFailed('Comment cannot be empty', details={'comment': ['This field is required.']})
        if len(text) > self.MAX_LENGTH:
            raise ValidationFailed(
                f'Comment must be at most {self.MAX_LENGTH} characters',
                details={'comment': ['Too long.']},
            )
        return text

    def create_comment(self, user: User, story: Story, text: str,
                       parent_short_id: Optional[str] = None) -> Comment:
        """
        Post a comment or a reply.

        Raises:
            ValidationFailed: If the text is invalid, the story is deleted or
                the parent belongs to another story
            RateLimited: If the user commented too often
            Conflict: If the same comment was posted moments ago
        """
        from apps.votes.services import vote_service
        from apps.notifications.services import notification_service

        text = self._validate_text(text)
        if story.is_deleted:
            raise ValidationFailed('Cannot comment on a deleted story')

        parent = None
        if parent_short_id:
            parent = Comment.objects.select_related('user').filter(short_id=parent_short_id).first()
            if parent is None:
                raise NotFound('Parent comment not found')
            if parent.story_id != story.id:
                raise ValidationFailed('Parent comment belongs to another story')

        rate_limit_service.check('comment_creation', f'user:{user.id}')

        since = timezone.now() - timedelta(seconds=self.DUPLICATE_WINDOW_SECONDS)
        if Comment.objects.filter(
            user=user, story=story, parent_comment=parent, comment=text, created_at__gte=since
        ).exists():
            raise Conflict('Duplicate comment', code='DUPLICATE_COMMENT')

        short_id = self._generate_unique_short_id()
        if parent is not None:
            thread_id = parent.thread_id or parent.short_id
        else:
            thread_id = short_id

        with transaction.atomic():
            comment = Comment.objects.create(
                story=story,
                user=user,
                parent_comment=parent,
                thread_id=thread_id,
                short_id=short_id,
                comment=text,
                markdown_comment=render_markdown(text),
            )
            vote_service.record_author_vote(user, comment=comment)
            story_service.increment_comment_count(story, 1)

        url = comment.get_absolute_url()
        if parent is not None:
            replied = notification_service.notify_reply(parent, comment)
        else:
            replied = notification_service.notify_story_reply(story, comment)
        notification_service.notify_mentions(
            text, user, url, context=story.title,
            exclude=[replied.user_id] if replied is not None else [],
        )

        cache_service.invalidate_comment(comment.id, story.id)
        logger.info(f'Comment {comment.short_id} posted by {user.username} on {story.short_id}')
        return comment

    def calculate_confidence(self, upvotes: int, downvotes: int) -> float:
        """
        Lower bound of the Wilson score interval for the upvote ratio.
        """
        n = upvotes + downvotes
        if n == 0:
            return 0.0
        z = self.WILSON_Z
        phat = upvotes / n
        return (
            phat + z * z / (2 * n) - z * math.sqrt((phat * (1 - phat) + z * z / (4 * n)) / n)
        ) / (1 + z * z / n)

    def build_comment_tree(self, comments: List[Comment]) -> List[dict]:
        """
        Nest comments under their parents, keeping the given order.

        Comments whose parent is not in the list become roots.
        """
        nodes = {comment.id: {'comment': comment, 'children': []} for comment in comments}
        roots = []
        for comment in comments:
            node = nodes[comment.id]
            parent = nodes.get(comment.parent_comment_id)
            if parent is not None and parent is not node:
                parent['children'].append(node)
            else:
                roots.append(node)
        return roots

    def get_comments_for_story(self, story: Story, sort: str = 'confidence') -> List[Comment]:
        ordering = self.SORTS.get(sort)
        if ordering is None:
            raise ValidationFailed(f'Unknown sort: {sort}', details={'sort': list(self.SORTS)})
        return list(
            Comment.objects.filter(story=story)
            .select_related('user', 'story', 'parent_comment').order_by(*ordering)
        )

    def get_comment_tree(self, story: Story, sort: str = 'confidence') -> List[dict]:
        return self.build_comment_tree(self.get_comments_for_story(story, sort))

    def get_by_short_id(self, short_id: str) -> Comment:
        comment = Comment.objects.select_related('user', 'story').filter(short_id=short_id).first()
        if comment is None:
            raise NotFound('Comment not found')
        return comment

    def can_edit(self, comment: Comment, user: Optional[User]) -> bool:
        if user is None or comment.is_deleted:
            return False
        if user.is_staff_member:
            return True
        if comment.user_id != user.id or comment.is_moderated:
            return False
        return timezone.now() - comment.created_at < timedelta(hours=self.EDIT_WINDOW_HOURS)

    def update_comment(self, comment: Comment, user: User, text: str) -> Comment:
        if not self.can_edit(comment, user):
            raise Forbidden('You cannot edit this comment')

        text = self._validate_text(text)
        comment.comment = text
        comment.markdown_comment = render_markdown(text)
        comment.save(update_fields=['comment', 'markdown_comment', 'updated_at'])
        cache_service.invalidate_comment(comment.id, comment.story_id)
        return comment

    def delete_comment(self, comment: Comment, user: User, reason: str = '') -> Comment:
        if comment.user_id != user.id and not user.is_staff_member:
            raise Forbidden('You cannot delete this comment')
        if comment.is_deleted:
            return comment

        comment.is_deleted = True
        comment.comment = DELETED_TEXT
        comment.markdown_comment = render_markdown(DELETED_TEXT)
        comment.save(update_fields=['is_deleted', 'comment', 'markdown_comment', 'updated_at'])
        story_service.increment_comment_count(comment.story, -1)

        if comment.user_id != user.id:
            from apps.moderation.services import moderation_service
            moderation_service.log(user, 'delete', comment=comment, target_user=comment.user, reason=reason)

        cache_service.invalidate_comment(comment.id, comment.story_id)
        logger.info(f'Comment {comment.short_id} deleted by {user.username}')
        return comment

    def flag_comment(self, comment: Comment, user: User, reason: str) -> int:
        from apps.votes.services import vote_service

        if comment.is_deleted:
            raise ValidationFailed('Cannot flag a deleted comment')
        return vote_service.flag_comment(user, comment, reason)

    def recent_comments(self, limit: int = 25, offset: int = 0) -> List[Comment]:
        return list(
            Comment.objects.filter(is_deleted=False, story__is_deleted=False)
            .select_related('user', 'story')
            .order_by('-created_at')[offset:offset + limit]
        )

    def comments_by_user(self, user: User, limit: int = 25) -> List[Comment]:
        return list(
            Comment.objects.filter(user=user, is_deleted=False)
            .select_related('story')
            .order_by('-created_at')[:limit]
        )


# Create singleton instance
comment_service = CommentService()
