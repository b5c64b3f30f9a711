"""
Private messages between members.

Tables: messages, message_replies

Bodies are stored encrypted (AES-256-GCM); use the body property to read them.
"""

from django.db import models

from apps.authentication.models import User
from apps.core.utils.crypto import decrypt, encrypt


class EncryptedBodyMixin:

    @property
    def body(self) -> str:
        return decrypt(self.encrypted_body) if self.encrypted_body else ''

    @body.setter
    def body(self, value: str) -> None:
        self.encrypted_body = encrypt(value) if value else ''


class Message(EncryptedBodyMixin, models.Model):
    short_id = models.CharField(max_length=10, unique=True)
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sent_messages')
    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='received_messages')
    subject = models.CharField(max_length=100)
    encrypted_body = models.TextField(db_column='body')
    has_been_read = models.BooleanField(default=False)
    deleted_by_author = models.BooleanField(default=False)
    deleted_by_recipient = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'messages'
        indexes = [
            models.Index(fields=['recipient', 'has_been_read'], name='messages_recipient_read_idx'),
            models.Index(fields=['author', 'created_at'], name='messages_author_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.author_id} -> {self.recipient_id}: {self.subject}'

    def is_participant(self, user) -> bool:
        return user is not None and user.id in (self.author_id, self.recipient_id)

    def other_participant_id(self, user) -> int:
        return self.recipient_id if user.id == self.author_id else self.author_id


class MessageReply(EncryptedBodyMixin, models.Model):
    message = models.ForeignKey(Message, on_delete=models.CASCADE, related_name='replies')
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name='message_replies')
    encrypted_body = models.TextField(db_column='body')
    has_been_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'message_replies'
        indexes = [
            models.Index(fields=['message', 'created_at'], name='message_replies_msg_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f'Reply by {self.author_id} on {self.message_id}'
