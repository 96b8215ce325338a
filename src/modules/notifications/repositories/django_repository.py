"""Django ORM implementation of the Notification repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from modules.notifications.models import Notification
from modules.notifications.repositories.interfaces import INotificationRepository


class NotificationDjangoRepository(INotificationRepository):
    def get_by_id(self, id: str) -> Optional[Notification]:
        try:
            return Notification.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Notification]:
        queryset = Notification.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_user(self, user_id: int) -> List[Notification]:
        return list(Notification.objects.filter(user_id=user_id))

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Notification:
        # Runs in its own savepoint so a failed insert never poisons the
        # caller's transaction.
        return Notification.objects.create(
            user_id=data["user_id"],
            title=data["title"],
            message=data["message"],
            meta=data.get("meta") or {},
        )

    @transaction.atomic
    def save(self, entity: Notification) -> Notification:
        entity.save()
        return entity
