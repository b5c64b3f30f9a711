from rest_framework import serializers
from .models import Message, MessageReply


class MessageSerializer(serializers.ModelSerializer):
    author = serializers.CharField(source='author.username', read_only=True)
    recipient = serializers.CharField(source='recipient.username', read_only=True)
    body = serializers.CharField(read_only=True)

    class Meta:
        model = Message
        fields = ['short_id', 'author', 'recipient', 'subject', 'body', 'has_been_read', 'created_at']
        read_only_fields = fields


class MessageReplySerializer(serializers.ModelSerializer):
    author = serializers.CharField(source='author.username', read_only=True)
    body = serializers.CharField(read_only=True)

    class Meta:
        model = MessageReply
        fields = ['id', 'author', 'body', 'has_been_read', 'created_at']
        read_only_fields = fields


class SendMessageSerializer(serializers.Serializer):
    recipient = serializers.CharField(max_length=50)
    subject = serializers.CharField(max_length=100)
    body = serializers.CharField(trim_whitespace=False)


class ReplySerializer(serializers.Serializer):
    body = serializers.CharField(trim_whitespace=False)
