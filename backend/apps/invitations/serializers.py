from rest_framework import serializers
from .models import Invitation


class InvitationSerializer(serializers.ModelSerializer):
    inviter = serializers.CharField(source='inviter.username', read_only=True)
    new_user = serializers.CharField(source='new_user.username', default=None, read_only=True)
    is_used = serializers.BooleanField(read_only=True)

    class Meta:
        model = Invitation
        fields = ['id', 'email', 'code', 'memo', 'inviter', 'new_user', 'is_used', 'used_at', 'created_at']
        read_only_fields = ['id', 'code', 'used_at', 'created_at']


class CreateInvitationSerializer(serializers.Serializer):
    email = serializers.EmailField(required=True)
    memo = serializers.CharField(required=False, allow_blank=True, max_length=1000, default='')
