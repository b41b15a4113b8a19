import bleach
from rest_framework import serializers


class CleanCharField(serializers.CharField):
    """CharField that strips markup from free text before it is stored."""

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return bleach.clean(value, tags=[], strip=True).strip()


class AtLeastOneFieldMixin:
    """Partial updates must carry at least one known field."""

    def validate(self, attrs):
        if getattr(self, 'partial', False) and not attrs:
            raise serializers.ValidationError('At least one field must be provided for update')
        return super().validate(attrs)
