"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CheckoutLineDTO``: one cart line being ordered.
- ``CheckoutDTO``: input for order creation from a cart.
- ``DashboardSummaryDTO``: manager dashboard counters.
"""

from __future__ import annotations

from typing import Dict, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import OrderStatus

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CheckoutLineDTO(BaseModel):
    """Immutable DTO for a single checkout line.

    ``unit_price`` is not accepted from the caller: the Service Layer
    snapshots it from the customization.
    """

    model_config = ConfigDict(frozen=True)

    customization_id: UUID
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CheckoutDTO(BaseModel):
    """Immutable DTO for checkout requests.

    Validates:
    - ``items`` must contain at least one line.
    - ``delivery_address`` must not be blank.
    - A customization may appear only once.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: int
    items: List[CheckoutLineDTO]
    delivery_address: str

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[CheckoutLineDTO]) -> List[CheckoutLineDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @field_validator("delivery_address")
    @classmethod
    def address_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Delivery address is required.")
        return v

    @model_validator(mode="after")
    def no_duplicate_customizations(self):
        ids = [item.customization_id for item in self.items]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate customizations are not allowed in the same order.")
        return self


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class DashboardSummaryDTO(BaseModel):
    """Manager dashboard counters, bucketed the way the dashboard shows them."""

    model_config = ConfigDict(frozen=True)

    pending: int
    assigned: int
    in_production: int
    ready_for_review: int
    completed: int
    shipped: int
    delivered: int
    cancelled: int
    fulfilled: int
    total: int

    @classmethod
    def from_counts(cls, counts: Dict[str, int]) -> DashboardSummaryDTO:
        values = {status: counts.get(status, 0) for status in OrderStatus.values}
        return cls(
            **values,
            fulfilled=values[OrderStatus.COMPLETED] + values[OrderStatus.DELIVERED],
            total=sum(values.values()),
        )
