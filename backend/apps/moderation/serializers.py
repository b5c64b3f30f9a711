from rest_framework import serializers
from .models import Moderation


class ModerationSerializer(serializers.ModelSerializer):
    moderator = serializers.CharField(source='moderator.username', default=None, read_only=True)
    story = serializers.CharField(source='story.short_id', default=None, read_only=True)
    comment = serializers.CharField(source='comment.short_id', default=None, read_only=True)
    target_user = serializers.CharField(source='target_user.username', default=None, read_only=True)

    class Meta:
        model = Moderation
        fields = [
            'id', 'moderator', 'action', 'story', 'comment', 'target_user', 'reason',
            'is_from_suggestions', 'subject_type', 'subject_id', 'metadata', 'created_at',
        ]
        read_only_fields = fields


class ModerateSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=['approve', 'delete', 'flag', 'unflag'])
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class MergeSerializer(serializers.Serializer):
    target = serializers.CharField(max_length=6)
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class BanSerializer(serializers.Serializer):
    reason = serializers.CharField()
    duration_days = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class UnbanSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
