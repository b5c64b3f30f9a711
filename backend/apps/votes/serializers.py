from rest_framework import serializers


class VoteSerializer(serializers.Serializer):
    direction = serializers.ChoiceField(choices=['up', 'down'])
    reason = serializers.CharField(max_length=1, required=False, allow_blank=True, default='')

    @property
    def value(self):
        return 1 if self.validated_data['direction'] == 'up' else -1
