"""
Unified API error responses.

Every error leaving a DRF view has the shape
``{"success": false, "message": str, "errors": ...}``.
"""
from __future__ import annotations

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from frontdesk.services.timeline import TimelineError

logger = structlog.get_logger(__name__)


def _flatten(detail, prefix: str = "") -> list[str]:
    if isinstance(detail, dict):
        out: list[str] = []
        for key, value in detail.items():
            label = "" if key == "non_field_errors" else f"{key}: "
            out.extend(_flatten(value, prefix + label))
        return out
    if isinstance(detail, (list, tuple)):
        out = []
        for item in detail:
            out.extend(_flatten(item, prefix))
        return out
    return [f"{prefix}{detail}"]


def api_exception_handler(exc, context):
    if isinstance(exc, TimelineError):
        return Response(
            {'success': False, 'message': str(exc), 'errors': {'code': exc.__class__.__name__}},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(exc.message_dict if hasattr(exc, 'error_dict') else exc.messages)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception(
            "unhandled_api_error",
            view=getattr(view, '__name__', view.__class__.__name__ if view else None),
            error=str(exc),
        )
        return Response(
            {'success': False, 'message': 'Internal server error', 'errors': None},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        messages = _flatten(resp.data)
        message = messages[0] if len(messages) == 1 else 'Validation failed'
        resp.data = {'success': False, 'message': message, 'errors': resp.data}
        return resp

    if isinstance(exc, Http404):
        message = 'Not found'
    elif isinstance(resp.data, dict) and 'detail' in resp.data:
        message = str(resp.data['detail'])
    else:
        message = '; '.join(_flatten(resp.data))
    resp.data = {'success': False, 'message': message, 'errors': None}
    return resp
