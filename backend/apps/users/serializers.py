from rest_framework import serializers
from apps.authentication.models import User


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['username', 'karma', 'is_admin', 'is_moderator', 'created_at']
        read_only_fields = fields


class SettingsSerializer(serializers.ModelSerializer):
    """Own account settings, readable and partially writable"""

    class Meta:
        model = User
        fields = [
            'email', 'about', 'homepage', 'github_username', 'twitter_username',
            'email_notifications', 'pushover_notifications', 'show_avatars',
            'show_story_previews', 'show_read_ribbons', 'hide_dragons',
            'allow_messages_from', 'filtered_tags', 'favorite_tags',
        ]
        read_only_fields = ['filtered_tags', 'favorite_tags']


class TagPreferencesSerializer(serializers.Serializer):
    filtered = serializers.ListField(child=serializers.CharField(max_length=25), required=False)
    favorite = serializers.ListField(child=serializers.CharField(max_length=25), required=False)
