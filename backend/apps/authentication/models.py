"""
Authentication models.

Tables: users, refresh_tokens
"""

import bcrypt
from django.conf import settings
from django.db import models
from django.utils import timezone


class User(models.Model):
    """
    Forum member

    Roles are plain flags: moderators act on content and users, admins can
    additionally act on moderators.
    """
    ALLOW_MESSAGES_CHOICES = [
        ('anyone', 'Anyone'),
        ('followed_users', 'Users I follow'),
        ('nobody', 'Nobody'),
    ]

    username = models.CharField(max_length=50, unique=True)
    email = models.EmailField(unique=True, max_length=255)
    password_hash = models.CharField(max_length=255)

    is_admin = models.BooleanField(default=False)
    is_moderator = models.BooleanField(default=False)
    karma = models.IntegerField(default=1)

    about = models.TextField(blank=True, default='')
    homepage = models.CharField(max_length=255, blank=True, default='')
    github_username = models.CharField(max_length=50, blank=True, default='')
    twitter_username = models.CharField(max_length=50, blank=True, default='')

    # Preferences
    email_notifications = models.BooleanField(default=True)
    pushover_notifications = models.BooleanField(default=False)
    show_avatars = models.BooleanField(default=True)
    show_story_previews = models.BooleanField(default=False)
    show_read_ribbons = models.BooleanField(default=True)
    hide_dragons = models.BooleanField(default=False)
    allow_messages_from = models.CharField(max_length=20, choices=ALLOW_MESSAGES_CHOICES, default='anyone')
    filtered_tags = models.JSONField(default=list, blank=True)
    favorite_tags = models.JSONField(default=list, blank=True)

    # Bans
    banned_at = models.DateTimeField(null=True, blank=True)
    banned_until = models.DateTimeField(null=True, blank=True)
    banned_reason = models.TextField(blank=True, default='')
    banned_by = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')

    # Invitations
    invited_by = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='invitees')
    disabled_invites = models.BooleanField(default=False)

    password_reset_token_hash = models.CharField(max_length=64, blank=True, default='')
    password_reset_sent_at = models.DateTimeField(null=True, blank=True)

    last_login_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['karma'], name='users_karma_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.username

    @property
    def is_authenticated(self):
        return True

    @property
    def is_anonymous(self):
        return False

    @property
    def is_staff_member(self):
        return self.is_admin or self.is_moderator

    @property
    def is_banned(self):
        if self.banned_at is None:
            return False
        return self.banned_until is None or self.banned_until > timezone.now()

    def set_password(self, raw_password):
        """Hash and set password using bcrypt"""
        rounds = getattr(settings, 'PASSWORD_HASH_ROUNDS', 12)
        self.password_hash = bcrypt.hashpw(
            raw_password.encode('utf-8'),
            bcrypt.gensalt(rounds=rounds)
        ).decode('utf-8')

    def check_password(self, raw_password):
        """Verify password using bcrypt"""
        if not self.password_hash:
            return False
        return bcrypt.checkpw(
            raw_password.encode('utf-8'),
            self.password_hash.encode('utf-8')
        )


class RefreshToken(models.Model):
    """
    Issued refresh token, revocable on logout or ban
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='refresh_tokens')
    token = models.CharField(max_length=500, unique=True)
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    revoked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'refresh_tokens'
        indexes = [
            models.Index(fields=['user', 'revoked_at'], name='refresh_user_revoked_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f'RefreshToken for {self.user.username}'

    @property
    def is_expired(self):
        return timezone.now() > self.expires_at

    @property
    def is_revoked(self):
        return self.revoked_at is not None

    @property
    def is_valid(self):
        """Not expired and not revoked"""
        return not self.is_expired and not self.is_revoked
