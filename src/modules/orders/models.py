"""Order, OrderItem, OrderTimelineEntry and ScheduledTransition models.

Rules carried by the schema:
- ``status`` is the single source of truth for workflow position and only
  holds ``OrderStatus`` values.
- Milestone timestamps are nullable and written at most once by the
  fulfillment service (``COALESCE`` update), never cleared.
- ``total_price`` is computed once at creation from the items.
- OrderItem snapshots the customization price at checkout (``unit_price``).
- Timeline entries are append-only; nothing updates or deletes them.
- ScheduledTransition persists each delayed auto-progression step so a
  restart does not lose it.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.accounts.constants import PROFILE_ROLE_CHOICES, Role
from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    OrderStatus,
    PaymentStatus,
)

logger = structlog.get_logger(__name__)


class Order(BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``ORD-YYYYMMDD-XXXXXX``).  The UUIDv7 ``id`` is used for
    all internal references and API lookups.
    """

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    designer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="assigned_orders",
        null=True,
        blank=True,
    )
    is_shop_order = models.BooleanField(default=False)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    delivery_address = models.TextField()

    order_date = models.DateTimeField(default=timezone.now)
    assigned_at = models.DateTimeField(null=True, blank=True)
    production_started_at = models.DateTimeField(null=True, blank=True)
    production_completed_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-order_date", "-id"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-order_date"], name="orders_date_idx"),
            models.Index(fields=["designer", "status"], name="orders_designer_idx"),
        ]

    @property
    def short_ref(self) -> str:
        """Last six characters of the order number, as shown to customers."""
        return self.order_number[-6:] if self.order_number else str(self.id)[-6:]

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Order line referencing the customization that was ordered.

    ``unit_price`` is a snapshot taken at checkout; ``subtotal`` is always
    ``quantity * unit_price``, recalculated on save.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    customization = models.ForeignKey(
        "cart.Customization",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=0),
                name="order_items_unit_price_not_negative",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.customization_id} x{self.quantity} ({self.subtotal})"


class OrderTimelineEntry(BaseModel):
    """Append-only audit entry, one per accepted transition.

    ``actor_role`` is ``system`` for auto-progression steps.  Ordered by
    ``at`` then by the time-ordered UUIDv7 ``id``.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="timeline",
    )
    status = models.CharField(max_length=20, choices=OrderStatus.choices)
    note = models.TextField(blank=True, default="")
    at = models.DateTimeField(default=timezone.now)
    actor_role = models.CharField(
        max_length=20,
        choices=PROFILE_ROLE_CHOICES + [(Role.SYSTEM.value, Role.SYSTEM.label)],
        default=Role.SYSTEM,
    )

    class Meta:
        db_table = "order_timeline"
        ordering = ["at", "id"]
        indexes = [
            models.Index(fields=["order", "at"], name="timeline_order_at_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id}: {self.status} @ {self.at:%Y-%m-%d %H:%M:%S}"


class JobStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    RUNNING = "running", "Running"
    DONE = "done", "Done"
    SKIPPED = "skipped", "Skipped"
    FAILED = "failed", "Failed"


class ScheduledTransition(BaseModel):
    """Durable auto-progression step for a shop order.

    Workflow:
    1. Checkout creates one row per step with ``run_at`` in the future.
    2. An ETA task and the periodic dispatcher both try to claim it
       (``pending`` → ``running``); only one wins.
    3. The step ends ``done``, ``skipped`` (order moved past it) or
       ``failed``.  A step that ran too early goes back to ``pending``, and
       a ``running`` claim older than the lease can be taken over.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="scheduled_transitions",
    )
    expected_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    target_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    run_at = models.DateTimeField()
    status = models.CharField(
        max_length=10,
        choices=JobStatus.choices,
        default=JobStatus.PENDING,
    )
    attempted_at = models.DateTimeField(null=True, blank=True, default=None)
    error_message = models.TextField(null=True, blank=True, default=None)  # noqa: DJ01

    class Meta:
        db_table = "order_scheduled_transitions"
        ordering = ["run_at", "id"]
        indexes = [
            models.Index(
                fields=["status", "run_at"],
                name="sched_status_run_at_idx",
            ),
        ]

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _finish(self, status: str, error: str | None = None) -> None:
        self.status = status
        self.error_message = error
        self.attempted_at = timezone.now()
        self.save(update_fields=["status", "error_message", "attempted_at"])

    def mark_as_done(self) -> None:
        self._finish(JobStatus.DONE)

    def mark_as_skipped(self, reason: str) -> None:
        self._finish(JobStatus.SKIPPED, reason)

    def mark_as_failed(self, error: str) -> None:
        self._finish(JobStatus.FAILED, error)

    def __str__(self) -> str:
        return (
            f"{self.order_id}: {self.expected_status} -> {self.target_status} "
            f"[{self.status}]"
        )
