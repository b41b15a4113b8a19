from django.utils import timezone
from rest_framework import serializers


class TimelineQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)

    def validate(self, attrs):
        attrs.setdefault('date', timezone.localdate())
        return attrs


class TimelineSlotQuerySerializer(TimelineQuerySerializer):
    y = serializers.FloatField(min_value=0)
