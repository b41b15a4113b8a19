"""
Day timeline endpoints.

``timeline`` returns one day's appointments already laid out: pixel
offsets, heights and side-by-side columns for overlapping bookings, plus
the hour grid and the current-time marker.  ``timeline/slot`` converts a
click on the grid back into the start time for a new booking.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk.permissions import IsFrontDesk
from frontdesk.serializers.timeline import TimelineQuerySerializer, TimelineSlotQuerySerializer
from frontdesk.services.appointments import day_timeline
from frontdesk.services.timeline import TimelineConfig, time_at_offset


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def timeline(request):
    q = TimelineQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    config = TimelineConfig.from_settings(settings)
    payload = day_timeline(q.validated_data['date'], config)
    return Response({'success': True, **payload})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def timeline_slot(request):
    q = TimelineSlotQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    config = TimelineConfig.from_settings(settings)
    start = time_at_offset(q.validated_data['y'], config)
    return Response({
        'success': True,
        'data': {
            'date': q.validated_data['date'].isoformat(),
            'appointmentTime': str(start),
        },
    })
