"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderTimelineEntry

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CheckoutLineSerializer(serializers.Serializer):
    """Validates a single line in a checkout request."""

    customization_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class CheckoutSerializer(serializers.Serializer):
    """Validates the checkout payload.

    ``items`` is optional: when omitted the caller's cart is ordered.
    """

    delivery_address = serializers.CharField(max_length=1000)
    items = CheckoutLineSerializer(many=True, required=False, allow_empty=False)


class AssignSerializer(serializers.Serializer):
    designer_id = serializers.IntegerField()


class SubmitToManagerSerializer(serializers.Serializer):
    completion_note = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=2000
    )


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=2000
    )


class StatusUpdateSerializer(serializers.Serializer):
    """Operator-chosen status change; only known statuses are accepted."""

    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=2000
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order lines with a customization snapshot."""

    name = serializers.CharField(source="customization.name", read_only=True)
    fabric = serializers.CharField(source="customization.fabric", read_only=True)
    color = serializers.CharField(source="customization.color", read_only=True)
    size = serializers.CharField(source="customization.size", read_only=True)
    product_id = serializers.UUIDField(
        source="customization.product_id", read_only=True, allow_null=True
    )

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "customization_id",
            "product_id",
            "name",
            "fabric",
            "color",
            "size",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class TimelineEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderTimelineEntry
        fields = ["status", "note", "at", "actor_role"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and timeline."""

    items = OrderItemSerializer(many=True, read_only=True)
    timeline = TimelineEntrySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "designer_id",
            "is_shop_order",
            "status",
            "payment_status",
            "total_price",
            "delivery_address",
            "order_date",
            "assigned_at",
            "production_started_at",
            "production_completed_at",
            "shipped_at",
            "delivered_at",
            "cancelled_at",
            "paid_at",
            "items",
            "timeline",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "designer_id",
            "is_shop_order",
            "status",
            "payment_status",
            "total_price",
            "order_date",
        ]
        read_only_fields = fields


class DashboardSummarySerializer(serializers.Serializer):
    pending = serializers.IntegerField()
    assigned = serializers.IntegerField()
    in_production = serializers.IntegerField()
    ready_for_review = serializers.IntegerField()
    completed = serializers.IntegerField()
    shipped = serializers.IntegerField()
    delivered = serializers.IntegerField()
    cancelled = serializers.IntegerField()
    fulfilled = serializers.IntegerField()
    total = serializers.IntegerField()
