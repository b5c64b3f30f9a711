from rest_framework import serializers
from .models import Comment


class CommentSerializer(serializers.ModelSerializer):
    user = serializers.CharField(source='user.username', read_only=True)
    story = serializers.CharField(source='story.short_id', read_only=True)
    parent = serializers.SerializerMethodField()

    class Meta:
        model = Comment
        fields = [
            'short_id', 'story', 'parent', 'thread_id', 'user', 'comment', 'markdown_comment',
            'score', 'upvotes', 'downvotes', 'flags', 'confidence',
            'is_deleted', 'is_moderated', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_parent(self, obj):
        parent = obj.parent_comment
        return parent.short_id if parent is not None else None


class CommentCreateSerializer(serializers.Serializer):
    story = serializers.CharField(max_length=6)
    comment = serializers.CharField(trim_whitespace=False)
    parent = serializers.CharField(max_length=10, required=False, allow_blank=True, allow_null=True)


class CommentUpdateSerializer(serializers.Serializer):
    comment = serializers.CharField(trim_whitespace=False)


class FlagSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1)


def serialize_tree(nodes):
    """Comment tree from CommentService.build_comment_tree as nested dicts"""
    return [
        {**CommentSerializer(node['comment']).data, 'children': serialize_tree(node['children'])}
        for node in nodes
    ]
