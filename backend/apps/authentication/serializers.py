"""
Authentication serializers for request/response validation.
"""

from rest_framework import serializers
from .models import User


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(required=True, max_length=50)
    email = serializers.EmailField(required=True)
    password = serializers.CharField(required=True, min_length=8, write_only=True)
    invitation_code = serializers.CharField(required=False, allow_blank=True, max_length=64)


class LoginSerializer(serializers.Serializer):
    """
    Accepts either a username or an email in `username`
    """
    username = serializers.CharField(required=True)
    password = serializers.CharField(required=True, write_only=True)


class RefreshTokenSerializer(serializers.Serializer):
    refreshToken = serializers.CharField(required=True)


class ApiKeySerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, max_length=100, default='')
    scopes = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    expires_in_days = serializers.IntegerField(required=False, min_value=1, max_value=3650)


class PasswordForgotSerializer(serializers.Serializer):
    email = serializers.EmailField(required=True)


class PasswordResetSerializer(serializers.Serializer):
    token = serializers.CharField(required=True)
    password = serializers.CharField(required=True, min_length=8, write_only=True)


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(required=True, write_only=True)
    new_password = serializers.CharField(required=True, min_length=8, write_only=True)


class CurrentUserSerializer(serializers.ModelSerializer):
    """
    The authenticated user's own account, including private settings
    """
    invited_by = serializers.CharField(source='invited_by.username', default=None, read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'karma', 'is_admin', 'is_moderator',
            'about', 'homepage', 'github_username', 'twitter_username',
            'email_notifications', 'pushover_notifications', 'show_avatars',
            'show_story_previews', 'show_read_ribbons', 'hide_dragons',
            'allow_messages_from', 'filtered_tags', 'favorite_tags',
            'invited_by', 'last_login_at', 'created_at',
        ]
        read_only_fields = fields
