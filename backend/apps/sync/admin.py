from django.contrib import admin
from .models import PendingSyncAction


@admin.register(PendingSyncAction)
class PendingSyncActionAdmin(admin.ModelAdmin):
    list_display = ['action_id', 'user', 'type', 'status', 'attempts', 'created_at']
    list_filter = ['type', 'status', 'created_at']
    search_fields = ['action_id', 'user__username', 'last_error']
    readonly_fields = ['action_id', 'created_at', 'updated_at']
    raw_id_fields = ['user']
    fieldsets = (
        ('Action', {
            'fields': ('action_id', 'user', 'type', 'data')
        }),
        ('State', {
            'fields': ('status', 'attempts', 'last_error', 'created_at', 'updated_at')
        }),
    )
