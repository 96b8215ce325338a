"""Customization, cart and wishlist models.

A ``Customization`` is the payload of every order line.  It either points
at a catalog ``Product`` (a shop item, possibly with size/colour choices) or
carries a studio-configured design with no product at all (a custom item).
Checkout classifies orders solely on that product reference.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Size(models.TextChoices):
    XS = "XS", "XS"
    S = "S", "S"
    M = "M", "M"
    L = "L", "L"
    XL = "XL", "XL"
    XXL = "XXL", "XXL"


class Customization(BaseModel):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="customizations",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="customizations",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=255)
    fabric = models.CharField(max_length=100, blank=True, default="")
    color = models.CharField(max_length=50, blank=True, default="")
    pattern = models.CharField(max_length=100, blank=True, default="")
    size = models.CharField(max_length=4, choices=Size.choices, default=Size.M)
    notes = models.TextField(blank=True, default="")
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    class Meta:
        db_table = "customizations"
        ordering = ["-created_at"]

    @property
    def is_shop_item(self) -> bool:
        return self.product_id is not None

    def __str__(self) -> str:
        kind = "shop" if self.is_shop_item else "custom"
        return f"{self.name} ({kind}, {self.size})"


class CartItem(BaseModel):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    customization = models.ForeignKey(
        "cart.Customization",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )

    class Meta:
        db_table = "cart_items"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "customization"],
                name="cart_items_owner_customization_uniq",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_items_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.customization} x{self.quantity}"


class WishlistItem(BaseModel):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="wishlist_items",
    )
    customization = models.ForeignKey(
        "cart.Customization",
        on_delete=models.CASCADE,
        related_name="wishlist_items",
    )

    class Meta:
        db_table = "wishlist_items"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "customization"],
                name="wishlist_items_owner_customization_uniq",
            ),
        ]
