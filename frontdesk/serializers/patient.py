from django.utils import timezone
from rest_framework import serializers

from frontdesk.models import InsuranceProvider, Patient
from frontdesk.services.pagination import PageQuerySerializer
from .fields import AtLeastOneFieldMixin, CleanCharField
from .insurance import InsuranceProviderBriefSerializer


class PatientSerializer(AtLeastOneFieldMixin, serializers.ModelSerializer):
    firstName = CleanCharField(source='first_name', max_length=100)
    middleName = CleanCharField(source='middle_name', max_length=100, required=False, allow_blank=True)
    lastName = CleanCharField(source='last_name', max_length=100)
    dateOfBirth = serializers.DateField(source='date_of_birth')
    gender = serializers.ChoiceField(choices=[c for c, _ in Patient.GENDER_CHOICES])
    contactNumber = CleanCharField(source='contact_number', max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = CleanCharField(max_length=500, required=False, allow_blank=True)
    insuranceProviderId = serializers.PrimaryKeyRelatedField(
        source='insurance_provider', queryset=InsuranceProvider.objects.all(),
        required=False, allow_null=True,
    )
    insuranceProvider = InsuranceProviderBriefSerializer(source='insurance_provider', read_only=True)
    policyNumber = CleanCharField(source='policy_number', max_length=100, required=False, allow_blank=True)
    copay = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    deductible = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    primaryCarePhysician = CleanCharField(
        source='primary_care_physician', max_length=200, required=False, allow_blank=True
    )
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id', 'mrn', 'firstName', 'middleName', 'lastName', 'dateOfBirth', 'gender',
            'contactNumber', 'email', 'address', 'insuranceProviderId', 'insuranceProvider',
            'policyNumber', 'copay', 'deductible', 'primaryCarePhysician', 'createdAt', 'updatedAt',
        ]
        read_only_fields = ['id', 'mrn']

    def to_internal_value(self, data):
        # 性别大小写不敏感
        if hasattr(data, 'get') and isinstance(data.get('gender'), str):
            data = data.copy()
            data['gender'] = data['gender'].strip().lower()
        return super().to_internal_value(data)

    def validate_dateOfBirth(self, v):
        if v > timezone.localdate():
            raise serializers.ValidationError('Date of birth cannot be in the future')
        return v


class PatientBriefSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source='first_name', read_only=True)
    lastName = serializers.CharField(source='last_name', read_only=True)
    contactNumber = serializers.CharField(source='contact_number', read_only=True)

    class Meta:
        model = Patient
        fields = ['id', 'mrn', 'firstName', 'lastName', 'contactNumber', 'email']


class PatientListQuerySerializer(PageQuerySerializer):
    gender = serializers.ChoiceField(choices=[c for c, _ in Patient.GENDER_CHOICES], required=False)
    insuranceProviderId = serializers.UUIDField(required=False)

    def to_internal_value(self, data):
        if hasattr(data, 'get') and isinstance(data.get('gender'), str):
            data = data.copy()
            data['gender'] = data['gender'].strip().lower()
        return super().to_internal_value(data)
