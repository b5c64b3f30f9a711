"""
Notification service.

Notifications are stored first and then pushed to the recipient's websocket
group; a client that is not connected picks them up through the API.
"""

import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db.models import Q
from django.utils import timezone

from apps.authentication.models import User
from apps.core.utils.text import extract_mentions, truncate
from .models import UserNotification

logger = logging.getLogger(__name__)


def user_group(user_id) -> str:
    """Channel group for a user's open websocket connections"""
    return f'user_{user_id}'


class NotificationService:
    """
    Creates notifications and delivers them in real time
    """

    _push_error_logged = False

    def serialize(self, notification: UserNotification) -> dict:
        return {
            'id': notification.id,
            'type': notification.type,
            'title': notification.title,
            'message': notification.message,
            'action_url': notification.action_url,
            'metadata': notification.metadata,
            'priority': notification.priority,
            'is_read': notification.is_read,
            'read_at': notification.read_at.isoformat() if notification.read_at else None,
            'created_at': notification.created_at.isoformat() if notification.created_at else None,
        }

    def notify(self, user: User, type: str, title: str, message: str = '', action_url: str = '',
               metadata: Optional[dict] = None, priority: str = 'normal') -> Optional[UserNotification]:
        """
        Persist and push a notification.

        Returns None when the recipient is banned.
        """
        if user.is_banned:
            return None

        notification = UserNotification.objects.create(
            user=user,
            type=type,
            title=title,
            message=message or '',
            action_url=action_url or '',
            metadata=metadata or {},
            priority=priority,
        )
        self.push(user.id, 'notification', self.serialize(notification))
        return notification

    def push(self, user_id, event: str, data: dict) -> bool:
        """
        Send an event to the user's websocket group.

        Delivery is best effort; a missing or failing channel layer is logged
        once and the stored notification remains available.
        """
        channel_layer = get_channel_layer()
        if channel_layer is None:
            return False

        try:
            async_to_sync(channel_layer.group_send)(
                user_group(user_id),
                {'type': 'notification.event', 'event': event, 'data': data},
            )
        except Exception as e:
            if not NotificationService._push_error_logged:
                logger.warning(f'Channel layer unavailable, realtime delivery disabled: {e}')
                NotificationService._push_error_logged = True
            return False

        NotificationService._push_error_logged = False
        return True

    def notify_reply(self, parent_comment, reply) -> Optional[UserNotification]:
        recipient = parent_comment.user
        if recipient.id == reply.user_id:
            return None
        return self.notify(
            recipient,
            'reply',
            f'{reply.user.username} replied to your comment',
            truncate(reply.comment, 200),
            action_url=reply.get_absolute_url(),
            metadata={
                'comment': reply.short_id,
                'parent': parent_comment.short_id,
                'story': reply.story.short_id,
                'author': reply.user.username,
            },
        )

    def notify_story_reply(self, story, comment) -> Optional[UserNotification]:
        recipient = story.user
        if recipient.id == comment.user_id:
            return None
        return self.notify(
            recipient,
            'reply',
            f'{comment.user.username} commented on your story',
            truncate(comment.comment, 200),
            action_url=comment.get_absolute_url(),
            metadata={
                'comment': comment.short_id,
                'story': story.short_id,
                'author': comment.user.username,
            },
        )

    def notify_mentions(self, text: str, actor: User, url: str, context: str = '',
                        exclude: Iterable[int] = ()) -> List[UserNotification]:
        """
        Notify every @username in text, once each, never the actor.
        """
        names = extract_mentions(text)
        if not names:
            return []

        query = Q()
        for name in names:
            query |= Q(username__iexact=name)
        skip = set(exclude) | {actor.id}

        sent = []
        for user in User.objects.filter(query).exclude(id__in=skip).order_by('id'):
            notification = self.notify(
                user,
                'mention',
                f'{actor.username} mentioned you',
                truncate(context, 200),
                action_url=url,
                metadata={'author': actor.username},
            )
            if notification is not None:
                sent.append(notification)
        return sent

    def notify_message(self, message) -> Optional[UserNotification]:
        return self.notify(
            message.recipient,
            'message',
            f'New message from {message.author.username}',
            message.subject,
            action_url=f'/messages/{message.short_id}',
            metadata={'message': message.short_id, 'author': message.author.username},
            priority='high',
        )

    def notify_invitation_used(self, inviter: User, new_user: User) -> Optional[UserNotification]:
        return self.notify(
            inviter,
            'invitation',
            'Your invitation was accepted',
            f'{new_user.username} joined using your invitation',
            action_url=f'/u/{new_user.username}',
            metadata={'new_user': new_user.username},
        )

    def notify_moderation(self, user: User, action: str, subject: str, reason: str = '',
                          action_url: str = '') -> Optional[UserNotification]:
        return self.notify(
            user,
            'moderation',
            f'A moderator applied "{action}" to your {subject}',
            reason or '',
            action_url=action_url,
            metadata={'action': action, 'subject': subject},
            priority='high',
        )

    def mark_read(self, user: User, ids: Optional[Iterable[int]] = None) -> int:
        notifications = UserNotification.objects.filter(user=user, is_read=False)
        if ids is not None:
            notifications = notifications.filter(id__in=list(ids))
        updated = notifications.update(is_read=True, read_at=timezone.now())
        if updated:
            self.push(user.id, 'unread_count', {'count': self.unread_count(user)})
        return updated

    def unread_count(self, user: User) -> int:
        return UserNotification.objects.filter(user=user, is_read=False).count()

    def list_for(self, user: User, unread_only: bool = False, limit: int = 50,
                 offset: int = 0) -> List[UserNotification]:
        notifications = UserNotification.objects.filter(user=user)
        if unread_only:
            notifications = notifications.filter(is_read=False)
        return list(notifications.order_by('-created_at')[offset:offset + limit])

    def cleanup_old(self, days: int = 30) -> int:
        cutoff = timezone.now() - timedelta(days=days)
        deleted, _ = UserNotification.objects.filter(is_read=True, created_at__lt=cutoff).delete()
        return deleted


# Create singleton instance
notification_service = NotificationService()
