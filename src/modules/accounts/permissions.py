"""DRF permission classes keyed on the actor role."""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.accounts.constants import MANAGER_ROLES
from modules.accounts.services import resolve_actor


class IsManager(BasePermission):
    """Allows managers and admins only."""

    message = "You are not permitted to perform this action."

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return resolve_actor(user).role in MANAGER_ROLES
