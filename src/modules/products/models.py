"""Catalog product, as referenced by shop customizations.

Catalog browsing is handled elsewhere; the order workflow only needs to know
that a product exists and what it costs by default.
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class ProductCategory(models.TextChoices):
    SHIRT = "shirt", "Shirt"
    KURTA = "kurta", "Kurta"
    DRESS = "dress", "Dress"
    TROUSERS = "trousers", "Trousers"
    OTHER = "other", "Other"


class Product(BaseModel):
    """Ready-made catalog product.

    ``sku`` is normalised to uppercase on save to prevent visual duplicates.
    """

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    category = models.CharField(
        max_length=20,
        choices=ProductCategory.choices,
        default=ProductCategory.OTHER,
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    in_stock = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="products_price_not_negative",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()
        if self.price is not None and self.price < 0:
            raise ValidationError({"price": "Price cannot be negative."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)
        if is_new:
            logger.info("product_created", product_id=str(self.id), sku=self.sku)

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
