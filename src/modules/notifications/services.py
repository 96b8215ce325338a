"""Notification sink.

Delivery is best-effort: a failure to persist a notification is logged and
swallowed, never propagated to the workflow step that triggered it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import structlog

if TYPE_CHECKING:
    from modules.notifications.models import Notification
    from modules.notifications.repositories.interfaces import (
        INotificationRepository,
    )

logger = structlog.get_logger(__name__)


class NotificationService:
    def __init__(self, repository: INotificationRepository) -> None:
        self._repo = repository

    def notify(
        self,
        user_id: int,
        title: str,
        message: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Optional[Notification]:
        """Persist one notification; return ``None`` if delivery failed."""
        try:
            notification = self._repo.create(
                {"user_id": user_id, "title": title, "message": message, "meta": meta}
            )
        except Exception as exc:
            logger.error(
                "notification.delivery_failed",
                user_id=user_id,
                title=title,
                error=str(exc),
            )
            return None
        logger.info(
            "notification.created",
            user_id=user_id,
            notification_id=str(notification.id),
        )
        return notification

    def notify_many(
        self,
        user_ids: Iterable[int],
        title: str,
        message: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> List[Notification]:
        delivered = []
        for user_id in dict.fromkeys(user_ids):
            notification = self.notify(user_id, title, message, meta)
            if notification is not None:
                delivered.append(notification)
        return delivered

    def list_for_user(self, user_id: int) -> List[Notification]:
        return self._repo.list_for_user(user_id)
