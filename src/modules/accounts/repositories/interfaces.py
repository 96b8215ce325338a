"""Profile repository interface.

Extends ``IRepository[Profile]`` with the look-ups the designer directory
needs: profiles by role and by auth user.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.accounts.models import Profile


class IProfileRepository(IRepository["Profile"]):
    """Repository contract for user profiles."""

    @abstractmethod
    def get_by_user_id(self, user_id: int) -> Optional[Profile]:
        """Retrieve the profile of an auth user."""

    @abstractmethod
    def list_by_role(self, role: str) -> List[Profile]:
        """List active profiles holding *role*."""
