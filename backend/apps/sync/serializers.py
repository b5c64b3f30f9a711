from rest_framework import serializers

from .models import PendingSyncAction
from .services import CONFLICT_STRATEGIES


class QueueActionSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=[choice for choice, _ in PendingSyncAction.TYPE_CHOICES])
    data = serializers.DictField()
    online = serializers.BooleanField(required=False, default=False)


class CacheDataSerializer(serializers.Serializer):
    key = serializers.CharField(max_length=100)
    data = serializers.JSONField()
    ttl = serializers.IntegerField(required=False, min_value=1, max_value=7 * 86400, default=86400)


class ResolveConflictSerializer(serializers.Serializer):
    local = serializers.DictField()
    server = serializers.DictField()
    strategy = serializers.ChoiceField(choices=list(CONFLICT_STRATEGIES), required=False, default='server_wins')
