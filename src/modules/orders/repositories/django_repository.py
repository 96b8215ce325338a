"""Django ORM implementation of the Order repositories.

All write operations are wrapped in ``transaction.atomic()`` so the Order
aggregate (Order + OrderItems + timeline) is persisted atomically.

Concurrency control on status updates is optimistic: the UPDATE is
conditioned on the status read by the caller (compare-and-swap).  No row
locks are held between the read and the write.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Count, F, Q, Value
from django.db.models.functions import Coalesce

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.models import (
    JobStatus,
    Order,
    OrderItem,
    OrderTimelineEntry,
    ScheduledTransition,
)
from modules.orders.repositories.interfaces import (
    IOrderRepository,
    IScheduledTransitionRepository,
)

logger = structlog.get_logger(__name__)

_RELATIONS = ("items__customization__product", "timeline")


def _claimable(now: datetime, lease: timedelta) -> Q:
    """Pending jobs, or running jobs whose claim is older than *lease*."""
    return Q(status=JobStatus.PENDING) | Q(
        status=JobStatus.RUNNING, attempted_at__lt=now - lease
    )


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        items = data.get("items", [])
        total = sum(
            (Decimal(item["unit_price"]) * item["quantity"] for item in items),
            Decimal("0.00"),
        )

        order = Order(
            customer_id=data["customer_id"],
            delivery_address=data["delivery_address"],
            status=data.get("status", OrderStatus.PENDING),
            is_shop_order=data.get("is_shop_order", False),
            total_price=total,
        )
        if data.get("order_date") is not None:
            order.order_date = data["order_date"]
        if data.get("production_started_at") is not None:
            order.production_started_at = data["production_started_at"]
        order.save()

        for item_data in items:
            OrderItem(
                order=order,
                customization_id=item_data["customization_id"],
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            ).save()

        logger.info(
            "order.created",
            order_id=str(order.id),
            item_count=len(items),
            total_price=str(total),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_related("customer", "designer")
                .prefetch_related(*_RELATIONS)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        return list(self.queryset(filters))

    def queryset(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Unevaluated queryset, for callers that filter/paginate further."""
        queryset = Order.objects.select_related("customer", "designer").prefetch_related(
            *_RELATIONS
        )
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def status_counts(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
        queryset = Order.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        rows = queryset.values("status").annotate(total=Count("id")).order_by()
        counts = {status: 0 for status in OrderStatus.values}
        for row in rows:
            counts[row["status"]] = row["total"]
        return counts

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order."""
        entity.save()
        logger.info("order.saved", order_id=str(entity.id))
        return entity

    def compare_and_set_status(
        self,
        order_id: str,
        expected_status: str,
        new_status: str,
        at: datetime,
        milestone_field: Optional[str] = None,
        extra_fields: Optional[Dict[str, Any]] = None,
    ) -> bool:
        updates: Dict[str, Any] = {"status": new_status, "updated_at": at}
        if milestone_field:
            updates[milestone_field] = Coalesce(
                F(milestone_field), Value(at, output_field=models.DateTimeField())
            )
        if extra_fields:
            updates.update(extra_fields)

        updated = Order.objects.filter(id=order_id, status=expected_status).update(
            **updates
        )
        if not updated:
            logger.info(
                "order.status_cas_lost",
                order_id=str(order_id),
                expected_status=expected_status,
                new_status=new_status,
            )
        return updated == 1

    @transaction.atomic
    def add_timeline_entry(
        self,
        order_id: str,
        status: str,
        note: str,
        actor_role: str,
        at: datetime,
    ) -> OrderTimelineEntry:
        entry = OrderTimelineEntry.objects.create(
            order_id=order_id,
            status=status,
            note=note,
            actor_role=actor_role,
            at=at,
        )
        logger.info(
            "order.timeline_appended",
            order_id=str(order_id),
            status=status,
            actor_role=actor_role,
        )
        return entry

    def mark_paid(self, order_id: str, at: datetime) -> bool:
        updated = Order.objects.filter(
            id=order_id, payment_status=PaymentStatus.UNPAID
        ).update(payment_status=PaymentStatus.PAID, paid_at=at, updated_at=at)
        return updated == 1


class ScheduledTransitionDjangoRepository(IScheduledTransitionRepository):
    """Concrete repository for auto-progression steps."""

    def get_by_id(self, id: str) -> Optional[ScheduledTransition]:
        try:
            return ScheduledTransition.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> List[ScheduledTransition]:
        queryset = ScheduledTransition.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: ScheduledTransition) -> ScheduledTransition:
        entity.save()
        return entity

    @transaction.atomic
    def create_steps(
        self, order_id: str, steps: Sequence[Tuple[str, str, datetime]]
    ) -> List[ScheduledTransition]:
        jobs = [
            ScheduledTransition.objects.create(
                order_id=order_id,
                expected_status=expected,
                target_status=target,
                run_at=run_at,
            )
            for expected, target, run_at in steps
        ]
        logger.info(
            "scheduler.steps_persisted", order_id=str(order_id), count=len(jobs)
        )
        return jobs

    def claim(
        self, job_id: str, now: datetime, lease: timedelta
    ) -> Optional[ScheduledTransition]:
        try:
            claimed = ScheduledTransition.objects.filter(
                _claimable(now, lease), id=job_id
            ).update(status=JobStatus.RUNNING, attempted_at=now)
        except (ValueError, ValidationError):
            return None
        if not claimed:
            return None
        return ScheduledTransition.objects.select_related("order").get(id=job_id)

    def release(self, job_id: str) -> bool:
        return bool(
            ScheduledTransition.objects.filter(
                id=job_id, status=JobStatus.RUNNING
            ).update(status=JobStatus.PENDING)
        )

    def due(
        self, now: datetime, lease: timedelta, limit: int = 100
    ) -> List[ScheduledTransition]:
        expired_claim = Q(status=JobStatus.RUNNING, attempted_at__lt=now - lease)
        return list(
            ScheduledTransition.objects.filter(
                Q(status=JobStatus.PENDING, run_at__lte=now) | expired_claim
            ).order_by("run_at", "id")[:limit]
        )
