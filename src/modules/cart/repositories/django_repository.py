"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.cart.models import CartItem, Customization, WishlistItem
from modules.cart.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[CartItem]:
        try:
            return (
                CartItem.objects.select_related("customization__product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[CartItem]:
        queryset = CartItem.objects.select_related("customization__product")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: CartItem) -> CartItem:
        entity.save()
        logger.info("cart.line_saved", cart_item_id=str(entity.id))
        return entity

    def get_customization(self, id: str) -> Optional[Customization]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            return Customization.objects.select_related("product").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def cart_for(self, owner_id: int) -> List[CartItem]:
        return list(
            CartItem.objects.select_related("customization__product")
            .filter(owner_id=owner_id)
            .order_by("created_at")
        )

    def delete_cart_lines(self, owner_id: int, customization_ids: Iterable[str]) -> int:
        deleted, _ = CartItem.objects.filter(
            owner_id=owner_id, customization_id__in=list(customization_ids)
        ).delete()
        return deleted

    def delete_wishlist_entries(
        self, owner_id: int, customization_ids: Iterable[str]
    ) -> int:
        deleted, _ = WishlistItem.objects.filter(
            owner_id=owner_id, customization_id__in=list(customization_ids)
        ).delete()
        return deleted
