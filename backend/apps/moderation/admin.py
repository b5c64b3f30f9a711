from django.contrib import admin
from .models import Moderation


@admin.register(Moderation)
class ModerationAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'moderator', 'action', 'subject_type', 'subject_id', 'target_user']
    list_filter = ['action', 'subject_type', 'is_from_suggestions', 'created_at']
    search_fields = ['moderator__username', 'target_user__username', 'reason']
    readonly_fields = ['created_at']
    raw_id_fields = ['moderator', 'story', 'comment', 'target_user']
    fieldsets = (
        ('Action', {
            'fields': ('moderator', 'action', 'reason', 'is_from_suggestions')
        }),
        ('Subject', {
            'fields': ('subject_type', 'subject_id', 'story', 'comment', 'target_user')
        }),
        ('Details', {
            'fields': ('metadata', 'created_at')
        }),
    )
