from rest_framework import serializers
from .models import UserNotification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserNotification
        fields = [
            'id', 'type', 'title', 'message', 'action_url', 'metadata',
            'priority', 'is_read', 'read_at', 'created_at',
        ]
        read_only_fields = fields


class MarkReadSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), required=False, allow_null=True)
