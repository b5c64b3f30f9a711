"""
Django admin configuration for authentication app.
"""

from django.contrib import admin
from .models import User, RefreshToken


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Admin interface for User model"""
    list_display = ('username', 'email', 'karma', 'is_moderator', 'is_admin', 'banned_at', 'created_at')
    list_filter = ('is_admin', 'is_moderator')
    search_fields = ('username', 'email')
    readonly_fields = ('id', 'created_at', 'updated_at', 'last_login_at', 'password_hash')
    raw_id_fields = ('invited_by', 'banned_by')
    ordering = ('-created_at',)

    fieldsets = (
        ('User Information', {
            'fields': ('id', 'username', 'email', 'karma', 'about', 'homepage', 'github_username', 'twitter_username')
        }),
        ('Roles', {
            'fields': ('is_moderator', 'is_admin')
        }),
        ('Ban', {
            'fields': ('banned_at', 'banned_until', 'banned_reason', 'banned_by')
        }),
        ('Invitations', {
            'fields': ('invited_by', 'disabled_invites')
        }),
        ('Security', {
            'fields': ('password_hash',)
        }),
        ('Timestamps', {
            'fields': ('last_login_at', 'created_at', 'updated_at')
        }),
    )


@admin.register(RefreshToken)
class RefreshTokenAdmin(admin.ModelAdmin):
    """Admin interface for RefreshToken model"""
    list_display = ('user', 'expires_at', 'is_valid', 'created_at', 'revoked_at')
    search_fields = ('user__username', 'user__email')
    list_filter = ('revoked_at', 'expires_at')
    readonly_fields = ('id', 'token', 'created_at')
    ordering = ('-created_at',)

    def is_valid(self, obj):
        """Display if token is valid"""
        return obj.is_valid
    is_valid.boolean = True
    is_valid.short_description = 'Valid'
