"""
User profiles, settings, follows and karma.
"""

import logging
from typing import List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db.models import Q, Sum

from apps.authentication.models import User
from apps.comments.models import Comment
from apps.core.exceptions import Conflict, NotFound, ValidationFailed
from apps.core.services import cache_service
from apps.core.utils.text import is_valid_http_url
from apps.stories.models import Story
from apps.votes.models import Vote
from .models import UserFollow

logger = logging.getLogger(__name__)


class UserService:
    MAX_FILTERED_TAGS = 50
    MAX_FAVORITE_TAGS = 20

    BOOLEAN_SETTINGS = (
        'email_notifications',
        'pushover_notifications',
        'show_avatars',
        'show_story_previews',
        'show_read_ribbons',
        'hide_dragons',
    )
    TEXT_SETTINGS = {
        'about': 65535,
        'homepage': 255,
        'github_username': 50,
        'twitter_username': 50,
    }

    def get_by_username(self, username: str) -> User:
        user = User.objects.filter(username__iexact=(username or '').strip()).first()
        if user is None:
            raise NotFound('User not found')
        return user

    def profile(self, user: User) -> dict:
        def load():
            return {
                'username': user.username,
                'karma': user.karma,
                'about': user.about,
                'homepage': user.homepage,
                'github_username': user.github_username,
                'twitter_username': user.twitter_username,
                'is_admin': user.is_admin,
                'is_moderator': user.is_moderator,
                'is_banned': user.is_banned,
                'invited_by': user.invited_by.username if user.invited_by_id else None,
                'story_count': Story.objects.filter(user=user, is_deleted=False).count(),
                'comment_count': Comment.objects.filter(user=user, is_deleted=False).count(),
                'follower_count': UserFollow.objects.filter(followed=user).count(),
                'following_count': UserFollow.objects.filter(follower=user).count(),
                'created_at': user.created_at.isoformat() if user.created_at else None,
            }

        return cache_service.remember(f'profile:{user.id}', 600, load, namespace='users')

    def update_settings(self, user: User, data: dict) -> User:
        """
        Update the allowed profile and preference fields; anything else is ignored.
        """
        updated = []

        for field, max_length in self.TEXT_SETTINGS.items():
            if field not in data:
                continue
            value = (data.get(field) or '').strip()
            if len(value) > max_length:
                raise ValidationFailed(f'{field} is too long', details={field: ['Too long.']})
            if field == 'homepage' and value and not is_valid_http_url(value):
                raise ValidationFailed('Homepage must be an http(s) URL', details={field: ['Invalid URL.']})
            setattr(user, field, value)
            updated.append(field)

        for field in self.BOOLEAN_SETTINGS:
            if field in data:
                setattr(user, field, bool(data[field]))
                updated.append(field)

        if 'allow_messages_from' in data:
            choice = data['allow_messages_from']
            if choice not in dict(User.ALLOW_MESSAGES_CHOICES):
                raise ValidationFailed(
                    'Invalid message preference',
                    details={'allow_messages_from': [key for key, _ in User.ALLOW_MESSAGES_CHOICES]},
                )
            user.allow_messages_from = choice
            updated.append('allow_messages_from')

        if 'email' in data:
            email = (data['email'] or '').strip().lower()
            try:
                validate_email(email)
            except DjangoValidationError:
                raise ValidationFailed('A valid email address is required', details={'email': ['Invalid email.']})
            if User.objects.filter(email=email).exclude(id=user.id).exists():
                raise Conflict('Email is already in use')
            user.email = email
            updated.append('email')

        if updated:
            user.save(update_fields=updated + ['updated_at'])
            cache_service.invalidate_user(user.id)
        return user

    def _normalize_tag_list(self, names, cap: int) -> List[str]:
        from apps.stories.services import tag_service

        result = []
        for name in names or []:
            tag = tag_service.normalize_tag_name(str(name))
            if tag and tag not in result:
                result.append(tag)
        return result[:cap]

    def update_tag_preferences(self, user: User, filtered=None, favorite=None) -> User:
        if filtered is not None:
            user.filtered_tags = self._normalize_tag_list(filtered, self.MAX_FILTERED_TAGS)
        if favorite is not None:
            user.favorite_tags = self._normalize_tag_list(favorite, self.MAX_FAVORITE_TAGS)
        user.save(update_fields=['filtered_tags', 'favorite_tags', 'updated_at'])
        cache_service.invalidate_user(user.id)
        cache_service.invalidate_namespace('recommendations')
        return user

    def apply_tag_preferences(self, stories: List[Story], user: Optional[User]) -> List[Story]:
        """
        Drop stories with a filtered tag and move stories with a favorite tag
        to the front. Relative order is otherwise unchanged.
        """
        if user is None:
            return list(stories)

        filtered = set(user.filtered_tags or [])
        favorite = set(user.favorite_tags or [])

        kept = [story for story in stories if not filtered.intersection(story.tag_names)]
        if not favorite:
            return kept

        preferred = [story for story in kept if favorite.intersection(story.tag_names)]
        others = [story for story in kept if not favorite.intersection(story.tag_names)]
        return preferred + others

    def follow(self, follower: User, username: str) -> UserFollow:
        from apps.notifications.services import notification_service

        followed = self.get_by_username(username)
        if followed.id == follower.id:
            raise ValidationFailed('You cannot follow yourself')

        follow, created = UserFollow.objects.get_or_create(follower=follower, followed=followed)
        if created:
            cache_service.invalidate_user(followed.id)
            notification_service.notify(
                followed,
                'follow',
                'New follower',
                f'{follower.username} started following you',
                action_url=f'/u/{follower.username}',
                metadata={'follower': follower.username},
                priority='low',
            )
        return follow

    def unfollow(self, follower: User, username: str) -> bool:
        followed = self.get_by_username(username)
        deleted, _ = UserFollow.objects.filter(follower=follower, followed=followed).delete()
        if deleted:
            cache_service.invalidate_user(followed.id)
        return deleted > 0

    def is_following(self, follower: Optional[User], followed: User) -> bool:
        if follower is None:
            return False
        return UserFollow.objects.filter(follower=follower, followed=followed).exists()

    def calculate_karma(self, user: User) -> int:
        """
        Votes cast by others on the user's stories and comments, plus one.
        """
        total = (
            Vote.objects.filter(
                Q(comment__isnull=True, story__user=user) | Q(comment__user=user)
            )
            .exclude(user=user)
            .aggregate(total=Sum('vote'))['total']
        )
        return (total or 0) + 1

    def recalculate_all_karma(self) -> int:
        changed = 0
        for user in User.objects.only('id', 'karma').iterator():
            karma = self.calculate_karma(user)
            if karma != user.karma:
                User.objects.filter(id=user.id).update(karma=karma)
                changed += 1
        if changed:
            cache_service.invalidate_namespace('users')
        logger.info(f'Karma recalculated, {changed} users changed')
        return changed

    def user_activity(self, user: User, limit: int = 20) -> List[dict]:
        stories = Story.objects.filter(user=user, is_deleted=False).order_by('-created_at')[:limit]
        comments = (
            Comment.objects.filter(user=user, is_deleted=False)
            .select_related('story').order_by('-created_at')[:limit]
        )

        activity = [
            {'type': 'story', 'item': story, 'created_at': story.created_at}
            for story in stories
        ] + [
            {'type': 'comment', 'item': comment, 'created_at': comment.created_at}
            for comment in comments
        ]
        activity.sort(key=lambda entry: entry['created_at'], reverse=True)
        return activity[:limit]

    def list_users(self, order: str = 'karma', limit: int = 50, offset: int = 0) -> List[User]:
        if order not in ('karma', 'newest'):
            raise ValidationFailed('Order must be karma or newest')
        ordering = ('-karma', 'username') if order == 'karma' else ('-created_at',)
        return list(User.objects.order_by(*ordering)[offset:offset + limit])


# Create singleton instance
user_service = UserService()
