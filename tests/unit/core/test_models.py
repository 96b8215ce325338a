"""Unit tests for BaseModel behaviour, exercised through concrete models."""

from __future__ import annotations

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from freezegun import freeze_time

from django.utils import timezone

from modules.products.models import Product

pytestmark = pytest.mark.unit


def _product(sku: str) -> Product:
    return Product.objects.create(sku=sku, name=sku, price=Decimal("10.00"))


class TestBaseModel:
    def test_primary_key_is_uuid7(self):
        product = _product("base-1")
        assert isinstance(product.id, uuid.UUID)
        assert product.id.version == 7

    def test_ids_follow_creation_order(self):
        first = _product("base-2")
        second = _product("base-3")
        assert first.id < second.id

    def test_timestamps_set_on_create(self):
        product = _product("base-4")
        assert product.created_at is not None
        assert product.updated_at is not None

    def test_update_fields_still_refresh_updated_at(self):
        with freeze_time(timezone.now() - timedelta(hours=1)):
            product = _product("base-5")
        created_updated_at = product.updated_at

        product.in_stock = False
        product.save(update_fields=["in_stock"])
        product.refresh_from_db()

        assert product.updated_at > created_updated_at
        assert product.in_stock is False


class TestProduct:
    def test_sku_normalised_to_uppercase(self):
        assert _product("  shirt-009 ").sku == "SHIRT-009"
