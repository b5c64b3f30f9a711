from django.contrib import admin
from .models import Tag, Story, Tagging, SavedStory, HiddenStory


class TaggingInline(admin.TabularInline):
    model = Tagging
    extra = 0
    raw_id_fields = ['tag']


@admin.register(Tag)
class TagAdmin(admin.ModelAdmin):
    list_display = ['tag', 'category', 'privileged', 'is_media', 'inactive', 'hotness_mod']
    list_filter = ['privileged', 'is_media', 'inactive', 'category']
    search_fields = ['tag', 'description']


@admin.register(Story)
class StoryAdmin(admin.ModelAdmin):
    list_display = ['short_id', 'title', 'user', 'domain', 'score', 'comments_count', 'is_deleted', 'created_at']
    list_filter = ['is_deleted', 'is_moderated', 'is_expired', 'created_at']
    search_fields = ['short_id', 'title', 'url', 'user__username']
    readonly_fields = ['short_id', 'normalized_url', 'hotness', 'created_at', 'updated_at']
    raw_id_fields = ['user', 'merged_story']
    inlines = [TaggingInline]
    fieldsets = (
        ('Story', {
            'fields': ('short_id', 'user', 'title', 'url', 'normalized_url', 'domain', 'description', 'user_is_author')
        }),
        ('Ranking', {
            'fields': ('score', 'upvotes', 'downvotes', 'flags', 'comments_count', 'hotness')
        }),
        ('Moderation', {
            'fields': ('is_moderated', 'is_deleted', 'is_expired', 'merged_story')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at')
        }),
    )


@admin.register(SavedStory)
class SavedStoryAdmin(admin.ModelAdmin):
    list_display = ['user', 'story', 'created_at']
    raw_id_fields = ['user', 'story']


@admin.register(HiddenStory)
class HiddenStoryAdmin(admin.ModelAdmin):
    list_display = ['user', 'story', 'created_at']
    raw_id_fields = ['user', 'story']
