from django.contrib import admin
from .models import Message, MessageReply


class MessageReplyInline(admin.TabularInline):
    model = MessageReply
    extra = 0
    fields = ['author', 'has_been_read', 'created_at']
    readonly_fields = ['author', 'created_at']


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Bodies are encrypted and not shown"""
    list_display = ['short_id', 'author', 'recipient', 'subject', 'has_been_read', 'created_at']
    list_filter = ['has_been_read', 'deleted_by_author', 'deleted_by_recipient', 'created_at']
    search_fields = ['short_id', 'subject', 'author__username', 'recipient__username']
    readonly_fields = ['short_id', 'created_at']
    raw_id_fields = ['author', 'recipient']
    exclude = ['encrypted_body']
    inlines = [MessageReplyInline]
