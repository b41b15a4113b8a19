from rest_framework import serializers

from frontdesk.models import InsuranceProvider
from frontdesk.services.pagination import PageQuerySerializer
from .fields import AtLeastOneFieldMixin, CleanCharField


class InsuranceProviderSerializer(AtLeastOneFieldMixin, serializers.ModelSerializer):
    name = CleanCharField(max_length=200)
    code = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    phone = CleanCharField(max_length=20, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = CleanCharField(max_length=500, required=False, allow_blank=True)
    website = serializers.URLField(required=False, allow_blank=True)
    isActive = serializers.BooleanField(source='is_active', required=False)
    patientCount = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = InsuranceProvider
        fields = [
            'id', 'name', 'code', 'phone', 'email', 'address', 'website',
            'isActive', 'patientCount', 'createdAt', 'updatedAt',
        ]
        read_only_fields = ['id']

    def get_patientCount(self, obj) -> int:
        count = getattr(obj, 'patient_count', None)
        return obj.patients.count() if count is None else count

    def validate_code(self, v):
        # 空字符串统一存为 NULL，避免唯一约束冲突
        v = (v or '').strip().upper()
        if not v:
            return None
        qs = InsuranceProvider.objects.filter(code=v)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError('Insurance provider code already exists')
        return v


class InsuranceProviderBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = InsuranceProvider
        fields = ['id', 'name', 'code']


class InsuranceListQuerySerializer(PageQuerySerializer):
    isActive = serializers.ChoiceField(choices=["true", "false", "1", "0"], required=False)

    def validate_isActive(self, v):
        return v in ("true", "1")
