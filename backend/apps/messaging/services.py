"""
Private message service.

A message is a thread between its author and recipient; replies from either
participant hang off it. Each side can delete the thread from their own view.
"""

import logging
from typing import List, Optional

from django.db import transaction
from django.db.models import Q

from apps.authentication.models import User
from apps.core.exceptions import Forbidden, NotFound, ValidationFailed
from apps.core.utils.text import generate_short_id
from .models import Message, MessageReply

logger = logging.getLogger(__name__)


class MessageService:
    MAX_SUBJECT_LENGTH = 100
    MAX_BODY_LENGTH = 65535

    def _generate_unique_short_id(self) -> str:
        while True:
            short_id = generate_short_id(10)
            if not Message.objects.filter(short_id=short_id).exists():
                return short_id

    def _validate_body(self, body: str) -> str:
        body = (body or '').strip()
        if not body:
            raise ValidationFailed('Message body is required', details={'body': ['This field is required.']})
        if len(body) > self.MAX_BODY_LENGTH:
            raise ValidationFailed('Message body is too long', details={'body': ['Too long.']})
        return body

    def can_message(self, author: User, recipient: User) -> bool:
        from apps.users.models import UserFollow

        if recipient.allow_messages_from == 'nobody':
            return author.is_staff_member
        if recipient.allow_messages_from == 'followed_users':
            return author.is_staff_member or UserFollow.objects.filter(
                follower=recipient, followed=author
            ).exists()
        return True

    def send_message(self, author: User, recipient_username: str, subject: str, body: str) -> Message:
        """
        Start a new thread.

        Raises:
            NotFound: If the recipient does not exist
            ValidationFailed: If the fields are invalid or the author messages themself
            Forbidden: If the recipient does not accept messages from the author
        """
        from apps.notifications.services import notification_service

        recipient = User.objects.filter(username__iexact=(recipient_username or '').strip()).first()
        if recipient is None:
            raise NotFound('Recipient not found')
        if recipient.id == author.id:
            raise ValidationFailed('You cannot send a message to yourself')

        subject = (subject or '').strip()
        if not subject:
            raise ValidationFailed('Subject is required', details={'subject': ['This field is required.']})
        if len(subject) > self.MAX_SUBJECT_LENGTH:
            raise ValidationFailed(
                f'Subject must be at most {self.MAX_SUBJECT_LENGTH} characters',
                details={'subject': ['Too long.']},
            )
        body = self._validate_body(body)

        if not self.can_message(author, recipient):
            raise Forbidden(f'{recipient.username} does not accept messages from you', code='MESSAGES_DISABLED')

        message = Message(
            short_id=self._generate_unique_short_id(),
            author=author,
            recipient=recipient,
            subject=subject,
        )
        message.body = body
        message.save()

        notification_service.notify_message(message)
        logger.info(f'Message {message.short_id} sent from {author.username} to {recipient.username}')
        return message

    def get_for_participant(self, user: User, short_id: str) -> Message:
        message = Message.objects.select_related('author', 'recipient').filter(short_id=short_id).first()
        if message is None or not message.is_participant(user):
            raise NotFound('Message not found')
        if self._deleted_for(message, user):
            raise NotFound('Message not found')
        return message

    def _deleted_for(self, message: Message, user: User) -> bool:
        if user.id == message.author_id:
            return message.deleted_by_author
        return message.deleted_by_recipient

    def reply(self, user: User, message: Message, body: str) -> MessageReply:
        from apps.notifications.services import notification_service

        if not message.is_participant(user):
            raise Forbidden('Only participants can reply to this message')
        body = self._validate_body(body)

        with transaction.atomic():
            reply = MessageReply(message=message, author=user)
            reply.body = body
            reply.save()

            # The thread reappears for the other side and reads as new there
            if user.id == message.author_id:
                message.deleted_by_recipient = False
                message.has_been_read = False
            else:
                message.deleted_by_author = False
            message.save(update_fields=['deleted_by_recipient', 'deleted_by_author', 'has_been_read'])

        other = message.recipient if user.id == message.author_id else message.author
        notification_service.notify(
            other,
            'message',
            f'New reply from {user.username}',
            message.subject,
            action_url=f'/messages/{message.short_id}',
            metadata={'message': message.short_id, 'author': user.username},
            priority='high',
        )
        return reply

    def inbox(self, user: User, limit: int = 25, offset: int = 0) -> List[Message]:
        return list(
            Message.objects.filter(recipient=user, deleted_by_recipient=False)
            .select_related('author', 'recipient').order_by('-created_at')[offset:offset + limit]
        )

    def sent(self, user: User, limit: int = 25, offset: int = 0) -> List[Message]:
        return list(
            Message.objects.filter(author=user, deleted_by_author=False)
            .select_related('author', 'recipient').order_by('-created_at')[offset:offset + limit]
        )

    def thread(self, user: User, short_id: str) -> dict:
        """
        A message with its replies, marking what the viewer has now read.
        """
        message = self.get_for_participant(user, short_id)

        if user.id == message.recipient_id and not message.has_been_read:
            message.has_been_read = True
            message.save(update_fields=['has_been_read'])

        message.replies.filter(has_been_read=False).exclude(author=user).update(has_been_read=True)
        replies = list(message.replies.select_related('author').order_by('created_at'))
        return {'message': message, 'replies': replies}

    def delete_for(self, user: User, message: Message) -> None:
        if not message.is_participant(user):
            raise Forbidden('Only participants can delete this message')

        if user.id == message.author_id:
            message.deleted_by_author = True
        if user.id == message.recipient_id:
            message.deleted_by_recipient = True
        message.save(update_fields=['deleted_by_author', 'deleted_by_recipient'])

    def unread_count(self, user: User) -> int:
        unread_messages = Message.objects.filter(
            recipient=user, has_been_read=False, deleted_by_recipient=False
        ).count()
        unread_replies = (
            MessageReply.objects.filter(has_been_read=False)
            .filter(
                Q(message__author=user, message__deleted_by_author=False)
                | Q(message__recipient=user, message__deleted_by_recipient=False)
            )
            .exclude(author=user)
            .count()
        )
        return unread_messages + unread_replies

    def _mailbox(self, user: User):
        return Message.objects.filter(
            Q(author=user, deleted_by_author=False) | Q(recipient=user, deleted_by_recipient=False)
        ).select_related('author', 'recipient')

    def search(self, user: User, query: str, limit: int = 50) -> List[Message]:
        """
        Messages whose subject or body contains the query, case-insensitively.

        Bodies are encrypted, so matching happens after decryption.
        """
        needle = (query or '').strip().lower()
        if not needle:
            raise ValidationFailed('Search query is required')

        results = []
        for message in self._mailbox(user).prefetch_related('replies').order_by('-created_at'):
            if needle in message.subject.lower() or needle in message.body.lower() or any(
                needle in reply.body.lower() for reply in message.replies.all()
            ):
                results.append(message)
                if len(results) >= limit:
                    break
        return results

    def conversation(self, user: User, other_username: str) -> List[Message]:
        other = User.objects.filter(username__iexact=(other_username or '').strip()).first()
        if other is None:
            raise NotFound('User not found')
        return list(
            self._mailbox(user)
            .filter(Q(author=other) | Q(recipient=other))
            .order_by('created_at')
        )


# Create singleton instance
message_service = MessageService()
