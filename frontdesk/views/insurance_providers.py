"""
Insurance provider reference data.

Any front-desk operator may read providers; creating, editing and
deleting them is reserved for administrators.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk.permissions import IsAdminOrReadOnly, IsFrontDesk
from frontdesk.serializers.insurance import (
    InsuranceListQuerySerializer,
    InsuranceProviderBriefSerializer,
    InsuranceProviderSerializer,
)
from frontdesk.services import insurance as svc
from frontdesk.services.pagination import paginate


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def insurance_providers(request):
    if request.method == 'POST':
        s = InsuranceProviderSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        provider = svc.create_provider(request.user, s)
        return Response({
            'success': True,
            'message': 'Insurance provider created successfully',
            'data': InsuranceProviderSerializer(provider).data,
        }, status=status.HTTP_201_CREATED)

    q = InsuranceListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.search_providers(search=vd.get('search', ''), is_active=vd.get('isActive'))
    items, pagination = paginate(qs, vd['page'], vd['limit'])
    return Response({
        'success': True,
        'data': InsuranceProviderSerializer(items, many=True).data,
        'pagination': pagination,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def active_insurance_providers(request):
    """Active providers for dropdowns."""
    data = InsuranceProviderBriefSerializer(svc.active_providers(), many=True).data
    return Response({'success': True, 'data': data})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def insurance_provider_detail(request, pk):
    provider = svc.get_provider_or_404(pk)
    if request.method == 'GET':
        return Response({'success': True, 'data': InsuranceProviderSerializer(provider).data})

    if request.method == 'DELETE':
        svc.delete_provider(request.user, provider)
        return Response({'success': True, 'message': 'Insurance provider deleted successfully'})

    s = InsuranceProviderSerializer(provider, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    provider = svc.update_provider(request.user, s)
    return Response({
        'success': True,
        'message': 'Insurance provider updated successfully',
        'data': InsuranceProviderSerializer(provider).data,
    })
