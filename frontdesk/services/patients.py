from typing import Optional

import structlog
from django.db import transaction
from django.db.models import Q
from rest_framework.exceptions import NotFound

from frontdesk.models import Patient, Appointment
from frontdesk.services.audit import log_action

logger = structlog.get_logger(__name__)


def search_patients(*, search: str = '', gender: Optional[str] = None, insurance_provider_id=None):
    qs = Patient.objects.select_related('insurance_provider')
    search = (search or '').strip()
    if search:
        qs = qs.filter(
            Q(first_name__icontains=search)
            | Q(last_name__icontains=search)
            | Q(mrn__icontains=search)
            | Q(email__icontains=search)
        )
    if gender:
        qs = qs.filter(gender=gender)
    if insurance_provider_id:
        qs = qs.filter(insurance_provider_id=insurance_provider_id)
    return qs.order_by('-created_at')


def get_patient_or_404(pk) -> Patient:
    obj = Patient.objects.select_related('insurance_provider').filter(pk=pk).first()
    if not obj:
        raise NotFound('Patient not found')
    return obj


def get_patient_by_mrn_or_404(mrn: str) -> Patient:
    obj = Patient.objects.select_related('insurance_provider').filter(mrn=(mrn or '').strip()).first()
    if not obj:
        raise NotFound('Patient not found')
    return obj


def patient_appointments(patient: Patient):
    return Appointment.objects.filter(patient=patient).order_by('-appointment_date', '-appointment_time')


@transaction.atomic
def create_patient(user, serializer) -> Patient:
    patient = serializer.save()
    log_action(user=user, action='patient_create', object_type='patient', object_id=patient.pk,
               detail={'mrn': patient.mrn})
    logger.info("patient_created", patient_id=str(patient.pk), mrn=patient.mrn)
    return patient


@transaction.atomic
def update_patient(user, serializer) -> Patient:
    patient = serializer.save()
    log_action(user=user, action='patient_update', object_type='patient', object_id=patient.pk,
               detail={'fields': sorted(serializer.validated_data)})
    logger.info("patient_updated", patient_id=str(patient.pk))
    return patient


@transaction.atomic
def delete_patient(user, patient: Patient) -> None:
    pk, mrn = patient.pk, patient.mrn
    patient.delete()
    log_action(user=user, action='patient_delete', object_type='patient', object_id=pk, detail={'mrn': mrn})
    logger.info("patient_deleted", patient_id=str(pk), mrn=mrn)
