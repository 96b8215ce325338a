"""Order domain constants.

Defines the status enumeration, the transition table (with the roles
allowed to take each edge) and the per-status side-effect metadata used by
the fulfillment service.
"""

from __future__ import annotations

from django.db import models

from modules.accounts.constants import Role


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ASSIGNED = "assigned", "Assigned"
    IN_PRODUCTION = "in_production", "In production"
    READY_FOR_REVIEW = "ready_for_review", "Ready for review"
    COMPLETED = "completed", "Completed (packed)"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    UNPAID = "unpaid", "Unpaid"
    PAID = "paid", "Paid"


_MANAGER = frozenset({Role.MANAGER, Role.ADMIN})
_DESIGNER = frozenset({Role.DESIGNER})
_SYSTEM = frozenset({Role.SYSTEM})

# (from, to) -> roles allowed to take the edge.
TRANSITION_ROLES: dict[tuple[str, str], frozenset[str]] = {
    (OrderStatus.PENDING, OrderStatus.ASSIGNED): _MANAGER,
    (OrderStatus.ASSIGNED, OrderStatus.IN_PRODUCTION): _DESIGNER,
    (OrderStatus.IN_PRODUCTION, OrderStatus.READY_FOR_REVIEW): _DESIGNER,
    (OrderStatus.IN_PRODUCTION, OrderStatus.COMPLETED): _MANAGER | _SYSTEM,
    (OrderStatus.READY_FOR_REVIEW, OrderStatus.COMPLETED): _MANAGER,
    (OrderStatus.COMPLETED, OrderStatus.SHIPPED): _MANAGER | _DESIGNER | _SYSTEM,
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED): _MANAGER | _DESIGNER | _SYSTEM,
}

TERMINAL_STATES: frozenset[str] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
)

# Any non-terminal order may be cancelled by a manager.
for _status in OrderStatus.values:
    if _status not in TERMINAL_STATES:
        TRANSITION_ROLES[(_status, OrderStatus.CANCELLED)] = _MANAGER

VALID_TRANSITIONS: dict[str, frozenset[str]] = {
    status: frozenset(
        target for (source, target) in TRANSITION_ROLES if source == status
    )
    for status in OrderStatus.values
}

# Target status -> every role that can reach it from some state.
ROLES_BY_TARGET: dict[str, frozenset[str]] = {
    status: frozenset().union(
        *(roles for (_, target), roles in TRANSITION_ROLES.items() if target == status)
    )
    for status in OrderStatus.values
}

# Milestone timestamp written (once) when an order reaches a status.
MILESTONE_FIELDS: dict[str, str] = {
    OrderStatus.ASSIGNED: "assigned_at",
    OrderStatus.IN_PRODUCTION: "production_started_at",
    OrderStatus.COMPLETED: "production_completed_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

DEFAULT_NOTES: dict[str, str] = {
    OrderStatus.ASSIGNED: "Order assigned to {designer}",
    OrderStatus.IN_PRODUCTION: "Designer accepted the order and started production",
    OrderStatus.READY_FOR_REVIEW: "Designer submitted completed work for review",
    OrderStatus.COMPLETED: "Order packing completed by manager",
    OrderStatus.SHIPPED: "Order shipped - Out for delivery",
    OrderStatus.DELIVERED: "Order delivered successfully - Payment confirmed (COD)",
    OrderStatus.CANCELLED: "Order cancelled by manager",
}

AUTO_NOTES: dict[str, str] = {
    OrderStatus.IN_PRODUCTION: "Auto-approved shop order - production started",
    OrderStatus.COMPLETED: "Auto-progression: packing completed",
    OrderStatus.SHIPPED: "Auto-progression: shipped - Out for delivery",
    OrderStatus.DELIVERED: "Auto-progression: delivered - Payment confirmed (COD)",
}

# (title, message) sent to the customer when the order reaches a status.
CUSTOMER_MESSAGES: dict[str, tuple[str, str]] = {
    OrderStatus.PENDING: (
        "Order Received",
        "Your order #{ref} has been received and is awaiting designer assignment.",
    ),
    OrderStatus.ASSIGNED: (
        "Order Assigned to Designer",
        "Your order #{ref} has been assigned to our designer and will be "
        "processed soon.",
    ),
    OrderStatus.IN_PRODUCTION: (
        "Order In Production",
        "Your order #{ref} is now in production.",
    ),
    OrderStatus.READY_FOR_REVIEW: (
        "Order Under Review",
        "Your order #{ref} has been completed by the designer and is being "
        "reviewed.",
    ),
    OrderStatus.COMPLETED: (
        "Order Packing Complete!",
        "Your order #{ref} has been packed and is ready for shipping.",
    ),
    OrderStatus.SHIPPED: (
        "Order Shipped!",
        "Your order #{ref} is out for delivery and on its way to you!",
    ),
    OrderStatus.DELIVERED: (
        "Order Delivered!",
        "Your order #{ref} has been delivered successfully! Thank you for "
        "shopping with us!",
    ),
    OrderStatus.CANCELLED: (
        "Order Cancelled",
        "Your order #{ref} was cancelled by manager.",
    ),
}

# Shop orders: (expected predecessor, next status), one per delayed step.
AUTO_PROGRESSION_STEPS: tuple[tuple[str, str], ...] = (
    (OrderStatus.IN_PRODUCTION, OrderStatus.COMPLETED),
    (OrderStatus.COMPLETED, OrderStatus.SHIPPED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
)

ORDER_NUMBER_MAX_RETRIES = 5
