from django.contrib import admin
from .models import Comment


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['short_id', 'story', 'user', 'score', 'flags', 'confidence', 'is_deleted', 'created_at']
    list_filter = ['is_deleted', 'is_moderated', 'created_at']
    search_fields = ['short_id', 'comment', 'user__username', 'story__short_id']
    readonly_fields = ['short_id', 'thread_id', 'confidence', 'created_at', 'updated_at']
    raw_id_fields = ['story', 'user', 'parent_comment']
    fieldsets = (
        ('Comment', {
            'fields': ('short_id', 'story', 'user', 'parent_comment', 'thread_id', 'comment')
        }),
        ('Ranking', {
            'fields': ('score', 'upvotes', 'downvotes', 'flags', 'confidence')
        }),
        ('Moderation', {
            'fields': ('is_deleted', 'is_moderated')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at')
        }),
    )
