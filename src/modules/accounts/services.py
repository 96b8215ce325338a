"""Actor resolution and the designer directory.

The order workflow never looks at auth users directly: HTTP callers are
turned into an ``Actor`` (role + user id) and designer look-ups go through
``DesignerDirectory``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional

import structlog

from modules.accounts.constants import Role

if TYPE_CHECKING:
    from modules.accounts.models import Profile
    from modules.accounts.repositories.interfaces import IProfileRepository
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Actor:
    role: str
    user_id: Optional[int]


SYSTEM_ACTOR = Actor(role=Role.SYSTEM, user_id=None)


def resolve_actor(user: Any) -> Actor:
    """Build the workflow actor for an authenticated user.

    Superusers act as admins; users without a profile act as customers.
    """
    if getattr(user, "is_superuser", False):
        return Actor(role=Role.ADMIN, user_id=user.pk)
    profile = getattr(user, "profile", None)
    role = profile.role if profile is not None else Role.CUSTOMER
    return Actor(role=role, user_id=user.pk)


class DesignerDirectory:
    """Look-ups over designer and manager profiles.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        profile_repository: IProfileRepository,
        order_repository: IOrderRepository,
    ) -> None:
        self._profile_repo = profile_repository
        self._order_repo = order_repository

    def list_by_role(self, role: str) -> List[Profile]:
        return self._profile_repo.list_by_role(role)

    def get_designer(self, user_id: Any) -> Optional[Profile]:
        """Return the active designer profile for *user_id*, or ``None``."""
        profile = self._profile_repo.get_by_user_id(user_id)
        if profile is None or profile.role != Role.DESIGNER or not profile.is_active:
            return None
        return profile

    def manager_ids(self) -> List[int]:
        """User IDs of the manager pool (managers and admins)."""
        ids = [p.user_id for p in self._profile_repo.list_by_role(Role.MANAGER)]
        ids.extend(p.user_id for p in self._profile_repo.list_by_role(Role.ADMIN))
        return ids

    def is_assigned_to(self, order_id: str, designer_id: Optional[int]) -> bool:
        if designer_id is None:
            return False
        order = self._order_repo.get_by_id(str(order_id))
        return order is not None and order.designer_id == designer_id
