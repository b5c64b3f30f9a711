from rest_framework import serializers
from .models import Story, Tag


class TagSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tag
        fields = ['id', 'tag', 'description', 'category', 'privileged', 'is_media', 'inactive', 'hotness_mod']
        read_only_fields = fields


class StorySerializer(serializers.ModelSerializer):
    user = serializers.CharField(source='user.username', read_only=True)
    tags = serializers.SerializerMethodField()
    permalink = serializers.CharField(source='get_absolute_url', read_only=True)

    class Meta:
        model = Story
        fields = [
            'short_id', 'title', 'url', 'domain', 'description', 'markdown_description',
            'user', 'user_is_author', 'tags', 'score', 'upvotes', 'downvotes', 'flags',
            'comments_count', 'is_moderated', 'permalink', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_tags(self, obj):
        return obj.tag_names


class StoryCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=150)
    url = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default='', trim_whitespace=False)
    tags = serializers.ListField(child=serializers.CharField(max_length=25), required=False, default=list)
    user_is_author = serializers.BooleanField(required=False, default=False)


class StoryUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=150, required=False)
    url = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    tags = serializers.ListField(child=serializers.CharField(max_length=25), required=False)
    user_is_author = serializers.BooleanField(required=False)


class TagCreateSerializer(serializers.Serializer):
    tag = serializers.CharField(max_length=25)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    category = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    privileged = serializers.BooleanField(required=False, default=False)
