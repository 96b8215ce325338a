"""Cart/wishlist collaborator used by checkout."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List

import structlog

if TYPE_CHECKING:
    from modules.cart.models import CartItem
    from modules.cart.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartService:
    def __init__(self, repository: ICartRepository) -> None:
        self._repo = repository

    def lines_for(self, customer_id: int) -> List[CartItem]:
        return self._repo.cart_for(customer_id)

    def clear_ordered_lines(self, customer_id: int, line_refs: Iterable[str]) -> None:
        """Remove ordered customizations from the customer's cart and wishlist.

        Called once per successful checkout, inside the checkout transaction.
        """
        refs = [str(ref) for ref in line_refs]
        cart_removed = self._repo.delete_cart_lines(customer_id, refs)
        wishlist_removed = self._repo.delete_wishlist_entries(customer_id, refs)
        logger.info(
            "cart.ordered_lines_cleared",
            customer_id=customer_id,
            cart_removed=cart_removed,
            wishlist_removed=wishlist_removed,
        )
