from typing import Optional

import structlog
from django.db import transaction
from django.db.models import Count, Q
from rest_framework.exceptions import NotFound

from frontdesk.models import InsuranceProvider
from frontdesk.services.audit import log_action

logger = structlog.get_logger(__name__)


def search_providers(*, search: str = '', is_active: Optional[bool] = None):
    qs = InsuranceProvider.objects.annotate(patient_count=Count('patients'))
    search = (search or '').strip()
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(code__icontains=search))
    if is_active is not None:
        qs = qs.filter(is_active=is_active)
    return qs.order_by('name')


def active_providers():
    return InsuranceProvider.objects.filter(is_active=True).order_by('name')


def get_provider_or_404(pk) -> InsuranceProvider:
    obj = InsuranceProvider.objects.annotate(patient_count=Count('patients')).filter(pk=pk).first()
    if not obj:
        raise NotFound('Insurance provider not found')
    return obj


@transaction.atomic
def create_provider(user, serializer) -> InsuranceProvider:
    provider = serializer.save()
    log_action(user=user, action='insurance_create', object_type='insurance_provider', object_id=provider.pk,
               detail={'name': provider.name})
    logger.info("insurance_provider_created", provider_id=str(provider.pk), code=provider.code)
    return provider


@transaction.atomic
def update_provider(user, serializer) -> InsuranceProvider:
    provider = serializer.save()
    log_action(user=user, action='insurance_update', object_type='insurance_provider', object_id=provider.pk,
               detail={'fields': sorted(serializer.validated_data)})
    logger.info("insurance_provider_updated", provider_id=str(provider.pk))
    return provider


@transaction.atomic
def delete_provider(user, provider: InsuranceProvider) -> None:
    pk, name = provider.pk, provider.name
    provider.delete()
    log_action(user=user, action='insurance_delete', object_type='insurance_provider', object_id=pk,
               detail={'name': name})
    logger.info("insurance_provider_deleted", provider_id=str(pk))
