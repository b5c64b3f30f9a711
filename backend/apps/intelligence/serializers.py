"""
Intelligence serializers.
"""

from rest_framework import serializers


class DuplicateCheckSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    url = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    description = serializers.CharField(required=False, allow_blank=True, default='')
    content = serializers.CharField(required=False, allow_blank=True, default='')
    exclude = serializers.CharField(max_length=6, required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if not any(attrs.get(field, '').strip() for field in ('title', 'url', 'description', 'content')):
            raise serializers.ValidationError('Provide at least a title, url or description')
        return attrs


class SimilaritySerializer(serializers.Serializer):
    content1 = serializers.CharField(trim_whitespace=False)
    content2 = serializers.CharField(trim_whitespace=False)
    title1 = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    title2 = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    url1 = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    url2 = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class AnalyzeContentSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=150)
    url = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    description = serializers.CharField(required=False, allow_blank=True, default='')
    content = serializers.CharField(required=False, allow_blank=True, default='')
    tags = serializers.ListField(child=serializers.CharField(max_length=25), required=False, default=list)
