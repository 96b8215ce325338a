"""Notification repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.notifications.models import Notification


class INotificationRepository(IRepository["Notification"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Notification:
        """Persist a notification from ``user_id``, ``title``, ``message``
        and ``meta``."""

    @abstractmethod
    def list_for_user(self, user_id: int) -> List[Notification]:
        """Return the user's notifications, newest first."""
