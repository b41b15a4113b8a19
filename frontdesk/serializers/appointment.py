from django.utils import timezone
from rest_framework import serializers

from frontdesk.models import Appointment, Patient, TIME_VALIDATOR
from frontdesk.services.pagination import PageQuerySerializer
from .fields import AtLeastOneFieldMixin, CleanCharField
from .patient import PatientBriefSerializer

APPOINTMENT_TYPES = [c for c, _ in Appointment.TYPE_CHOICES]
APPOINTMENT_STATUSES = [c for c, _ in Appointment.STATUS_CHOICES]


class AppointmentSerializer(AtLeastOneFieldMixin, serializers.ModelSerializer):
    patientId = serializers.PrimaryKeyRelatedField(source='patient', queryset=Patient.objects.all())
    patient = PatientBriefSerializer(read_only=True)
    appointmentDate = serializers.DateField(source='appointment_date')
    appointmentTime = serializers.CharField(source='appointment_time', validators=[TIME_VALIDATOR])
    duration = serializers.IntegerField(
        min_value=15, max_value=480, required=False,
        error_messages={
            'min_value': 'Duration must be at least 15 minutes',
            'max_value': 'Duration cannot exceed 8 hours (480 minutes)',
        },
    )
    appointmentType = serializers.ChoiceField(source='appointment_type', choices=APPOINTMENT_TYPES)
    visitReason = CleanCharField(source='visit_reason', max_length=500, required=False, allow_blank=True)
    department = CleanCharField(max_length=100, required=False, allow_blank=True)
    provider = CleanCharField(max_length=200, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=APPOINTMENT_STATUSES, required=False)
    notes = CleanCharField(max_length=1000, required=False, allow_blank=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id', 'patientId', 'patient', 'appointmentDate', 'appointmentTime', 'duration',
            'appointmentType', 'visitReason', 'department', 'provider', 'status', 'notes',
            'createdAt', 'updatedAt',
        ]
        read_only_fields = ['id']

    def validate_appointmentDate(self, v):
        # 仅新建时限制不得早于今天；修改历史预约不受限
        if self.instance is None and v < timezone.localdate():
            raise serializers.ValidationError('Appointment date must be today or in the future')
        return v


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=APPOINTMENT_STATUSES)


class AppointmentListQuerySerializer(PageQuerySerializer):
    status = serializers.ChoiceField(choices=APPOINTMENT_STATUSES, required=False)
    appointmentType = serializers.ChoiceField(choices=APPOINTMENT_TYPES, required=False)
    department = serializers.CharField(required=False, allow_blank=True, max_length=100)
    date = serializers.DateField(required=False)
    patientId = serializers.UUIDField(required=False)
