from django.contrib import admin
from .models import Invitation


@admin.register(Invitation)
class InvitationAdmin(admin.ModelAdmin):
    list_display = ('email', 'inviter', 'new_user', 'used_at', 'created_at')
    search_fields = ('email', 'code', 'inviter__username')
    list_filter = ('used_at',)
    readonly_fields = ('code', 'created_at')
    raw_id_fields = ('inviter', 'new_user')
