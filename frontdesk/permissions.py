"""
Role based permission classes.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

ADMIN_ROLES = {"admin"}
FRONT_DESK_ROLES = {"admin", "staff"}


class IsAdminRole(BasePermission):
    """Allow access only to users with an administrative role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in ADMIN_ROLES)


class IsFrontDesk(BasePermission):
    """Any active front-desk operator (staff or admin)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) in FRONT_DESK_ROLES)


class IsAdminOrReadOnly(BasePermission):
    """Staff may read reference data; only admins change it."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return getattr(user, "role", None) in FRONT_DESK_ROLES
        return getattr(user, "role", None) in ADMIN_ROLES
