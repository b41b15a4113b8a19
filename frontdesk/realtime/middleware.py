"""
Token authentication for WebSocket connections.

Browsers cannot set an ``Authorization`` header on a WebSocket handshake, so
the client passes the access token from ``/api/auth/login`` as
``?token=...``.  Non-browser clients may send ``Authorization: Bearer ...``
or ``Authorization: Token ...`` instead.  Both the JWT access token and the
DRF token are accepted; without a usable token the session user set by
``AuthMiddlewareStack`` is kept.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qs

from channels.auth import AuthMiddlewareStack
from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from rest_framework.authtoken.models import Token
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken
import structlog

from frontdesk.models import User

logger = structlog.get_logger(__name__)


def _token_from_scope(scope) -> Optional[str]:
    query = parse_qs(scope.get("query_string", b"").decode())
    if query.get("token"):
        return query["token"][0].strip() or None
    for name, value in scope.get("headers", []):
        if name.lower() != b"authorization":
            continue
        parts = value.decode().split()
        if len(parts) == 2 and parts[0] in ("Bearer", "Token"):
            return parts[1]
    return None


@database_sync_to_async
def user_for_token(raw: str) -> Optional[User]:
    try:
        access = AccessToken(raw)
    except TokenError:
        pass
    else:
        return User.objects.filter(pk=access.get(api_settings.USER_ID_CLAIM), is_active=True).first()
    token = Token.objects.select_related("user").filter(key=raw).first()
    if token and token.user.is_active:
        return token.user
    return None


class TokenAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        raw = _token_from_scope(scope)
        if raw:
            user = await user_for_token(raw)
            if user is not None:
                scope = dict(scope, user=user)
            else:
                logger.warning("ws_token_rejected", path=scope.get("path"))
        return await super().__call__(scope, receive, send)


def TokenAuthMiddlewareStack(inner):
    return AuthMiddlewareStack(TokenAuthMiddleware(inner))
