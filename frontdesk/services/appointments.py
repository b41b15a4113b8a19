"""
Appointment bookkeeping and the day timeline feed.

Every change to an appointment is audited and, once the transaction
commits, announced to the ``timeline.<date>`` channel group so that open
timelines for the affected day(s) can reload.
"""
from __future__ import annotations

import datetime as dt
from typing import Any, Iterable, Optional

import structlog
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound

from frontdesk.models import Appointment
from frontdesk.services.audit import log_action
from frontdesk.services.timeline import TimelineConfig, hour_slots, layout_day, now_offset

logger = structlog.get_logger(__name__)

TIMELINE_GROUP_PREFIX = "timeline."


def timeline_group(day: Any) -> str:
    return f"{TIMELINE_GROUP_PREFIX}{day.isoformat() if hasattr(day, 'isoformat') else day}"


def broadcast_timeline_changed(days: Iterable[dt.date], appointment_id: Any, action: str) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    for day in sorted(set(days)):
        event = {
            "type": "timeline.changed",
            "date": day.isoformat(),
            "appointmentId": str(appointment_id),
            "action": action,
        }
        async_to_sync(channel_layer.group_send)(timeline_group(day), event)
    logger.debug("timeline_broadcast", appointment_id=str(appointment_id), action=action)


def _announce(days: Iterable[dt.date], appointment_id: Any, action: str) -> None:
    days = list(days)
    transaction.on_commit(lambda: broadcast_timeline_changed(days, appointment_id, action))


def search_appointments(*, search: str = '', status: Optional[str] = None, appointment_type: Optional[str] = None,
                        department: Optional[str] = None, date: Optional[dt.date] = None, patient_id=None):
    qs = Appointment.objects.select_related('patient')
    search = (search or '').strip()
    if search:
        qs = qs.filter(
            Q(visit_reason__icontains=search)
            | Q(provider__icontains=search)
            | Q(patient__first_name__icontains=search)
            | Q(patient__last_name__icontains=search)
            | Q(patient__mrn__icontains=search)
        )
    if status:
        qs = qs.filter(status=status)
    if appointment_type:
        qs = qs.filter(appointment_type=appointment_type)
    if department:
        qs = qs.filter(department__icontains=department)
    if date:
        qs = qs.filter(appointment_date=date)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by('appointment_date', 'appointment_time')


def appointments_on(day: dt.date):
    return Appointment.objects.select_related('patient').filter(appointment_date=day).order_by('appointment_time')


def get_appointment_or_404(pk) -> Appointment:
    obj = Appointment.objects.select_related('patient', 'patient__insurance_provider').filter(pk=pk).first()
    if not obj:
        raise NotFound('Appointment not found')
    return obj


@transaction.atomic
def create_appointment(user, serializer) -> Appointment:
    appt = serializer.save()
    log_action(user=user, action='appointment_create', object_type='appointment', object_id=appt.pk,
               detail={'date': appt.appointment_date.isoformat(), 'time': appt.appointment_time})
    logger.info("appointment_created", appointment_id=str(appt.pk),
                date=appt.appointment_date.isoformat(), time=appt.appointment_time, duration=appt.duration)
    _announce([appt.appointment_date], appt.pk, 'created')
    return appt


@transaction.atomic
def update_appointment(user, serializer, *, action: str = 'updated') -> Appointment:
    previous_day = serializer.instance.appointment_date
    appt = serializer.save()
    log_action(user=user, action=f'appointment_{"status" if action == "status" else "update"}',
               object_type='appointment', object_id=appt.pk,
               detail={'fields': sorted(serializer.validated_data), 'status': appt.status})
    logger.info("appointment_updated", appointment_id=str(appt.pk), action=action, status=appt.status)
    _announce([previous_day, appt.appointment_date], appt.pk, action)
    return appt


@transaction.atomic
def delete_appointment(user, appt: Appointment) -> None:
    pk, day = appt.pk, appt.appointment_date
    appt.delete()
    log_action(user=user, action='appointment_delete', object_type='appointment', object_id=pk,
               detail={'date': day.isoformat()})
    logger.info("appointment_deleted", appointment_id=str(pk), date=day.isoformat())
    _announce([day], pk, 'deleted')


def _timeline_record(appt: Appointment) -> dict:
    patient = appt.patient
    return {
        'id': str(appt.pk),
        'appointmentDate': appt.appointment_date,
        'appointmentTime': appt.appointment_time,
        'duration': appt.duration,
        'status': appt.status,
        'label': patient.full_name if patient else '',
        'appointmentType': appt.appointment_type,
        'visitReason': appt.visit_reason,
        'provider': appt.provider,
        'department': appt.department,
        'patient': {
            'id': str(patient.pk),
            'mrn': patient.mrn,
            'firstName': patient.first_name,
            'lastName': patient.last_name,
        } if patient else None,
    }


def day_timeline(day: dt.date, config: TimelineConfig, now: Optional[dt.datetime] = None) -> dict:
    """Lay out every appointment booked on ``day``."""
    now = now or timezone.localtime()
    records = [_timeline_record(a) for a in appointments_on(day)]
    blocks = []
    for result in layout_day(records, config):
        block = result.as_dict(config.column_gap)
        source = result.entry.source
        block.update({
            'appointmentType': source['appointmentType'],
            'visitReason': source['visitReason'],
            'provider': source['provider'],
            'department': source['department'],
            'patient': source['patient'],
        })
        blocks.append(block)
    logger.info(
        "timeline_computed",
        date=day.isoformat(),
        count=len(blocks),
        clusters=len({b['cluster'] for b in blocks}),
        max_columns=max((b['totalColumns'] for b in blocks), default=0),
    )
    return {
        'date': day.isoformat(),
        'config': config.as_dict(),
        'hours': hour_slots(config),
        'nowOffset': now_offset(day, now, config),
        'count': len(blocks),
        'data': blocks,
    }
