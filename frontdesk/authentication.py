"""
Token authentication for the front-desk API.

Browser sessions authenticate with the JWT pair issued at login; scripts
and the legacy client may still send the DRF token with the ``Token``
keyword.  Kept in its own module so REST framework can import it from
settings without pulling in any views.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """DRF token authentication under a stable project import path."""

    keyword = 'Token'
