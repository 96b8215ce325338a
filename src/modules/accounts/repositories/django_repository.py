"""Django ORM implementation of the Profile repository.

Error handling follows the Null Object pattern: look-ups return ``None``
instead of raising; the Service Layer decides how to translate a missing
profile into a domain error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.accounts.models import Profile
from modules.accounts.repositories.interfaces import IProfileRepository

logger = structlog.get_logger(__name__)


class ProfileDjangoRepository(IProfileRepository):
    """Concrete Profile repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Profile]:
        try:
            return Profile.objects.select_related("user").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_user_id(self, user_id: int) -> Optional[Profile]:
        """Returns ``None`` for unknown or malformed user IDs."""
        try:
            return Profile.objects.select_related("user").filter(user_id=user_id).first()
        except (ValueError, TypeError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Profile]:
        queryset = Profile.objects.select_related("user")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_by_role(self, role: str) -> List[Profile]:
        return list(
            Profile.objects.select_related("user")
            .filter(role=role, is_active=True)
            .order_by("user__username")
        )

    @transaction.atomic
    def save(self, entity: Profile) -> Profile:
        entity.save()
        logger.info("profile.saved", profile_id=str(entity.id), role=entity.role)
        return entity
