"""Cart repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.cart.models import CartItem, Customization


class ICartRepository(IRepository["CartItem"]):
    """Repository contract for cart lines, wishlist entries and their
    customizations."""

    @abstractmethod
    def get_customization(self, id: str) -> Optional[Customization]:
        """Retrieve a customization with its product."""

    @abstractmethod
    def cart_for(self, owner_id: int) -> List[CartItem]:
        """Return the owner's cart lines, oldest first."""

    @abstractmethod
    def delete_cart_lines(self, owner_id: int, customization_ids: Iterable[str]) -> int:
        """Delete cart lines for the given customizations; return the count."""

    @abstractmethod
    def delete_wishlist_entries(
        self, owner_id: int, customization_ids: Iterable[str]
    ) -> int:
        """Delete wishlist entries for the given customizations; return the count."""
