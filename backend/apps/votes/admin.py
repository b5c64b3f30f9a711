from django.contrib import admin
from .models import Vote


@admin.register(Vote)
class VoteAdmin(admin.ModelAdmin):
    list_display = ['user', 'story', 'comment', 'vote', 'reason', 'created_at']
    list_filter = ['vote', 'reason', 'created_at']
    search_fields = ['user__username', 'story__short_id', 'comment__short_id']
    raw_id_fields = ['user', 'story', 'comment']
