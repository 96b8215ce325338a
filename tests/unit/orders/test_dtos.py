"""Unit tests for order DTOs."""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.dtos import CheckoutDTO, CheckoutLineDTO, DashboardSummaryDTO

pytestmark = pytest.mark.unit


class TestCheckoutLineDTO:
    def test_quantity_defaults_to_one(self):
        assert CheckoutLineDTO(customization_id=uuid4()).quantity == 1

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError, match="at least 1"):
            CheckoutLineDTO(customization_id=uuid4(), quantity=0)

    def test_is_immutable(self):
        line = CheckoutLineDTO(customization_id=uuid4())
        with pytest.raises(ValidationError):
            line.quantity = 5


class TestCheckoutDTO:
    def test_address_is_stripped(self):
        dto = CheckoutDTO(
            customer_id=1,
            items=[CheckoutLineDTO(customization_id=uuid4())],
            delivery_address="  12 MG Road  ",
        )
        assert dto.delivery_address == "12 MG Road"

    def test_blank_address_rejected(self):
        with pytest.raises(ValidationError, match="Delivery address is required"):
            CheckoutDTO(
                customer_id=1,
                items=[CheckoutLineDTO(customization_id=uuid4())],
                delivery_address="   ",
            )

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            CheckoutDTO(customer_id=1, items=[], delivery_address="12 MG Road")

    def test_duplicate_customization_rejected(self):
        cid = uuid4()
        with pytest.raises(ValidationError, match="Duplicate"):
            CheckoutDTO(
                customer_id=1,
                items=[
                    CheckoutLineDTO(customization_id=cid),
                    CheckoutLineDTO(customization_id=cid, quantity=2),
                ],
                delivery_address="12 MG Road",
            )


class TestDashboardSummaryDTO:
    def test_missing_statuses_count_as_zero(self):
        summary = DashboardSummaryDTO.from_counts({"shipped": 4})
        assert summary.shipped == 4
        assert summary.pending == 0
        assert summary.fulfilled == 0
        assert summary.total == 4
