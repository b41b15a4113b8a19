"""
Appointment booking endpoints.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk.permissions import IsFrontDesk
from frontdesk.serializers.appointment import (
    AppointmentListQuerySerializer,
    AppointmentSerializer,
    AppointmentStatusSerializer,
)
from frontdesk.serializers.patient import PatientSerializer
from frontdesk.services import appointments as svc
from frontdesk.services.pagination import paginate


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def appointments(request):
    """``GET`` lists appointments by date and time; ``POST`` books one."""
    if request.method == 'POST':
        s = AppointmentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        appt = svc.create_appointment(request.user, s)
        return Response({
            'success': True,
            'message': 'Appointment created successfully',
            'data': AppointmentSerializer(appt).data,
        }, status=status.HTTP_201_CREATED)

    q = AppointmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.search_appointments(
        search=vd.get('search', ''),
        status=vd.get('status'),
        appointment_type=vd.get('appointmentType'),
        department=vd.get('department'),
        date=vd.get('date'),
        patient_id=vd.get('patientId'),
    )
    items, pagination = paginate(qs, vd['page'], vd['limit'])
    return Response({
        'success': True,
        'data': AppointmentSerializer(items, many=True).data,
        'pagination': pagination,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def today_appointments(request):
    qs = svc.appointments_on(timezone.localdate())
    return Response({'success': True, 'data': AppointmentSerializer(qs, many=True).data})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def appointment_detail(request, pk):
    appt = svc.get_appointment_or_404(pk)
    if request.method == 'GET':
        data = AppointmentSerializer(appt).data
        # 详情页需要完整的患者信息（含保险）
        data['patient'] = PatientSerializer(appt.patient).data
        return Response({'success': True, 'data': data})

    if request.method == 'DELETE':
        svc.delete_appointment(request.user, appt)
        return Response({'success': True, 'message': 'Appointment deleted successfully'})

    s = AppointmentSerializer(appt, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    appt = svc.update_appointment(request.user, s)
    return Response({
        'success': True,
        'message': 'Appointment updated successfully',
        'data': AppointmentSerializer(appt).data,
    })


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def appointment_status(request, pk):
    appt = svc.get_appointment_or_404(pk)
    body = AppointmentStatusSerializer(data=request.data)
    body.is_valid(raise_exception=True)
    s = AppointmentSerializer(appt, data={'status': body.validated_data['status']}, partial=True)
    s.is_valid(raise_exception=True)
    appt = svc.update_appointment(request.user, s, action='status')
    return Response({
        'success': True,
        'message': 'Appointment status updated successfully',
        'data': AppointmentSerializer(appt).data,
    })
