from typing import Optional, Any, Dict

import structlog
from django.contrib.auth import get_user_model

from frontdesk.models import AuditEvent

User = get_user_model()
logger = structlog.get_logger(__name__)


def log_action(*, user: Optional[User], action: str, object_type: Optional[str] = None,
               object_id: Any = None, detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    event = AuditEvent.objects.create(
        user=user if isinstance(user, User) and user.pk else None,
        action=action,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        detail=detail or {},
    )
    logger.info("audit_event", action=action, object_type=object_type, object_id=event.object_id,
                user_id=getattr(user, 'pk', None))
    return event
