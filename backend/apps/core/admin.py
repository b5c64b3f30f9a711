from django.contrib import admin
from .models import ApiUsageLog


@admin.register(ApiUsageLog)
class ApiUsageLogAdmin(admin.ModelAdmin):
    list_display = ['method', 'endpoint', 'status_code', 'duration_ms', 'user_id', 'timestamp']
    list_filter = ['method', 'status_code']
    search_fields = ['endpoint']
    readonly_fields = ['timestamp']
