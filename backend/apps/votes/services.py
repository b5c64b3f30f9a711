"""
Voting service.

Counts on stories and comments are always recomputed from the vote rows, so
the stored upvotes/downvotes/score never drift from the votes table.
"""

import logging
from typing import Optional

from django.db import transaction
from django.db.models import Count, F, Q

from apps.authentication.models import User
from apps.comments.models import Comment
from apps.core.exceptions import Conflict, Forbidden, ValidationFailed
from apps.core.services import cache_service, rate_limit_service
from apps.stories.models import Story
from .models import Vote

logger = logging.getLogger(__name__)


class VoteService:
    """
    Toggle semantics: repeating a vote removes it, the opposite vote replaces it
    """

    def _validate(self, value, reason: str) -> tuple:
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ValidationFailed('Vote must be 1 or -1')
        if value not in (1, -1):
            raise ValidationFailed('Vote must be 1 or -1')

        reason = (reason or '').strip().upper()
        if reason and reason not in Vote.REASONS:
            raise ValidationFailed('Unknown vote reason', details={'reasons': Vote.REASONS})
        if value == 1:
            reason = ''
        return value, reason

    def vote_on_story(self, user: User, story: Story, value, reason: str = '') -> dict:
        value, reason = self._validate(value, reason)
        if story.is_deleted:
            raise ValidationFailed('Cannot vote on a deleted story')
        if value == -1 and story.user_id == user.id:
            raise Forbidden('You cannot downvote your own story')

        rate_limit_service.check('voting', f'user:{user.id}')
        with transaction.atomic():
            action, delta = self._cast(user, value, reason, story=story)
            self.recount_story(story)
        self._adjust_karma(story.user_id, user, delta)
        cache_service.invalidate_story(story.id)

        logger.debug(f'{user.username} {action} vote {value:+d} on story {story.short_id}')
        return {'action': action, 'score': story.score}

    def vote_on_comment(self, user: User, comment: Comment, value, reason: str = '') -> dict:
        value, reason = self._validate(value, reason)
        if comment.is_deleted:
            raise ValidationFailed('Cannot vote on a deleted comment')
        if value == -1 and comment.user_id == user.id:
            raise Forbidden('You cannot downvote your own comment')

        rate_limit_service.check('voting', f'user:{user.id}')
        with transaction.atomic():
            action, delta = self._cast(user, value, reason, story=comment.story, comment=comment)
            self.recount_comment(comment)
        self._adjust_karma(comment.user_id, user, delta)
        cache_service.invalidate_comment(comment.id, comment.story_id)

        logger.debug(f'{user.username} {action} vote {value:+d} on comment {comment.short_id}')
        return {'action': action, 'score': comment.score}

    def _cast(self, user: User, value: int, reason: str, story: Story,
              comment: Optional[Comment] = None) -> tuple:
        """
        Apply the toggle and return (action, score delta)
        """
        existing = Vote.objects.select_for_update().filter(user=user, story=story, comment=comment).first()

        if existing is None:
            Vote.objects.create(user=user, story=story, comment=comment, vote=value, reason=reason)
            return 'added', value

        previous = existing.vote
        if previous == value:
            # A flag outlives the removed score vote
            if existing.reason and comment is not None:
                existing.vote = 0
                existing.save(update_fields=['vote', 'updated_at'])
            else:
                existing.delete()
            return 'removed', -previous

        existing.vote = value
        if reason:
            existing.reason = reason
        elif comment is None:
            existing.reason = ''
        existing.save(update_fields=['vote', 'reason', 'updated_at'])
        return ('added' if previous == 0 else 'changed'), value - previous

    def record_author_vote(self, user: User, story: Story = None, comment: Comment = None) -> None:
        """
        The submitter's own upvote on new content; not rate limited, no karma.
        """
        if comment is not None:
            Vote.objects.get_or_create(user=user, story=comment.story, comment=comment, defaults={'vote': 1})
            self.recount_comment(comment)
        else:
            Vote.objects.get_or_create(user=user, story=story, comment=None, defaults={'vote': 1})
            self.recount_story(story)

    def flag_comment(self, user: User, comment: Comment, reason: str) -> int:
        """
        Record a flag with a reason; one flag per user per comment.

        Returns the new flag count.
        """
        reason = (reason or '').strip().upper()
        if reason not in Vote.REASONS:
            raise ValidationFailed('A valid flag reason is required', details={'reasons': Vote.REASONS})
        if comment.user_id == user.id:
            raise Forbidden('You cannot flag your own comment')

        with transaction.atomic():
            existing = Vote.objects.select_for_update().filter(user=user, story=comment.story, comment=comment).first()
            if existing is not None and existing.reason:
                raise Conflict('You have already flagged this comment')
            if existing is None:
                Vote.objects.create(user=user, story=comment.story, comment=comment, vote=0, reason=reason)
            else:
                existing.reason = reason
                existing.save(update_fields=['reason', 'updated_at'])
            self.recount_comment(comment)

        cache_service.invalidate_comment(comment.id, comment.story_id)
        return comment.flags

    def _tally(self, votes) -> dict:
        return votes.aggregate(
            upvotes=Count('id', filter=Q(vote=1)),
            downvotes=Count('id', filter=Q(vote=-1)),
            flags=Count('id', filter=~Q(reason='')),
        )

    def flag_vote_count(self, comment: Comment) -> int:
        """Flags raised by users, before any moderator adjustment"""
        return Vote.objects.filter(comment=comment).exclude(reason='').count()

    def recount_story(self, story: Story) -> None:
        from apps.stories.services import story_service

        tally = self._tally(Vote.objects.filter(story=story, comment__isnull=True))
        story.upvotes = tally['upvotes']
        story.downvotes = tally['downvotes']
        story.score = story.upvotes - story.downvotes
        Story.objects.filter(id=story.id).update(
            upvotes=story.upvotes, downvotes=story.downvotes, score=story.score
        )
        story_service.update_hotness(story)

    def recount_comment(self, comment: Comment) -> None:
        from apps.comments.services import comment_service

        comment.mod_flags = Comment.objects.values_list('mod_flags', flat=True).get(id=comment.id)
        tally = self._tally(Vote.objects.filter(comment=comment))
        comment.upvotes = tally['upvotes']
        comment.downvotes = tally['downvotes']
        comment.score = comment.upvotes - comment.downvotes
        comment.flags = max(0, tally['flags'] + comment.mod_flags)
        comment.confidence = comment_service.calculate_confidence(comment.upvotes, comment.downvotes)
        Comment.objects.filter(id=comment.id).update(
            upvotes=comment.upvotes,
            downvotes=comment.downvotes,
            score=comment.score,
            flags=comment.flags,
            confidence=comment.confidence,
        )

    def _adjust_karma(self, author_id: int, voter: User, delta: int) -> None:
        if not delta or author_id == voter.id:
            return
        User.objects.filter(id=author_id).update(karma=F('karma') + delta)
        cache_service.invalidate_user(author_id)

    def user_vote_for(self, user: Optional[User], story: Story = None, comment: Comment = None) -> int:
        """0 when the user has not voted (or only flagged)"""
        if user is None:
            return 0
        if comment is not None:
            vote = Vote.objects.filter(user=user, comment=comment).first()
        else:
            vote = Vote.objects.filter(user=user, story=story, comment__isnull=True).first()
        return vote.vote if vote else 0

    def comment_votes_for(self, user: Optional[User], story: Story) -> dict:
        """{comment_id: vote} for every comment on the story the user voted on"""
        if user is None:
            return {}
        return dict(
            Vote.objects.filter(user=user, story=story, comment__isnull=False)
            .exclude(vote=0).values_list('comment_id', 'vote')
        )


# Create singleton instance
vote_service = VoteService()
