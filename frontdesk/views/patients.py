"""
Patient registry endpoints.

Front-desk staff search, register, edit and remove patients.  Patients
are addressed by UUID or by their medical record number (MRN).
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk.permissions import IsFrontDesk
from frontdesk.serializers.appointment import AppointmentSerializer
from frontdesk.serializers.patient import PatientListQuerySerializer, PatientSerializer
from frontdesk.services import patients as svc
from frontdesk.services.pagination import paginate


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def patients(request):
    """``GET`` searches patients (newest first); ``POST`` registers a new one."""
    if request.method == 'POST':
        s = PatientSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        patient = svc.create_patient(request.user, s)
        return Response({
            'success': True,
            'message': 'Patient created successfully',
            'data': PatientSerializer(patient).data,
        }, status=status.HTTP_201_CREATED)

    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.search_patients(
        search=vd.get('search', ''),
        gender=vd.get('gender'),
        insurance_provider_id=vd.get('insuranceProviderId'),
    )
    items, pagination = paginate(qs, vd['page'], vd['limit'])
    return Response({
        'success': True,
        'data': PatientSerializer(items, many=True).data,
        'pagination': pagination,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def patient_by_mrn(request, mrn: str):
    patient = svc.get_patient_by_mrn_or_404(mrn)
    return Response({'success': True, 'data': PatientSerializer(patient).data})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def patient_detail(request, pk):
    patient = svc.get_patient_or_404(pk)
    if request.method == 'GET':
        return Response({'success': True, 'data': PatientSerializer(patient).data})

    if request.method == 'DELETE':
        svc.delete_patient(request.user, patient)
        return Response({'success': True, 'message': 'Patient deleted successfully'})

    s = PatientSerializer(patient, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    patient = svc.update_patient(request.user, s)
    return Response({
        'success': True,
        'message': 'Patient updated successfully',
        'data': PatientSerializer(patient).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def patient_appointments(request, pk):
    patient = svc.get_patient_or_404(pk)
    qs = svc.patient_appointments(patient).select_related('patient')
    return Response({'success': True, 'data': AppointmentSerializer(qs, many=True).data})
