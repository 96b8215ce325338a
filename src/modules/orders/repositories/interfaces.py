"""Order repository interfaces.

``IOrderRepository`` extends ``IRepository[Order]`` with what the workflow
needs beyond plain CRUD: atomic creation with items, a compare-and-swap
status update, and timeline appends.  ``IScheduledTransitionRepository``
stores the delayed auto-progression steps.

The Service Layer depends exclusively on these contracts (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderTimelineEntry, ScheduledTransition


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and timeline entries.
    Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` must include ``customer_id``, ``delivery_address`` and
        ``items`` (list of dicts with ``customization_id``, ``quantity``,
        ``unit_price``); optionally ``status``, ``is_shop_order`` and any
        milestone timestamp.  ``total_price`` is computed here.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items and timeline."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional filters."""

    @abstractmethod
    def compare_and_set_status(
        self,
        order_id: str,
        expected_status: str,
        new_status: str,
        at: datetime,
        milestone_field: Optional[str] = None,
        extra_fields: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Move the order to *new_status* only if it is still *expected_status*.

        Sets *milestone_field* to *at* only when it is still null.  Returns
        ``False`` (and writes nothing) when the stored status has changed.
        """

    @abstractmethod
    def add_timeline_entry(
        self,
        order_id: str,
        status: str,
        note: str,
        actor_role: str,
        at: datetime,
    ) -> OrderTimelineEntry:
        """Append one entry to the order's timeline."""

    @abstractmethod
    def mark_paid(self, order_id: str, at: datetime) -> bool:
        """Flip ``payment_status`` to paid if still unpaid; return whether it
        flipped."""

    @abstractmethod
    def status_counts(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
        """Number of orders per status."""


class IScheduledTransitionRepository(IRepository["ScheduledTransition"]):
    """Repository contract for durable auto-progression steps."""

    @abstractmethod
    def create_steps(
        self, order_id: str, steps: Sequence[Tuple[str, str, datetime]]
    ) -> List[ScheduledTransition]:
        """Persist ``(expected_status, target_status, run_at)`` steps."""

    @abstractmethod
    def claim(
        self, job_id: str, now: datetime, lease: timedelta
    ) -> Optional[ScheduledTransition]:
        """Atomically move a job to running, stamped at *now*, and return it.

        A pending job can be claimed, and so can a running job whose claim
        is older than *lease*.  Returns ``None`` when the job is unknown or
        held by a live claim.
        """

    @abstractmethod
    def release(self, job_id: str) -> bool:
        """Put a running job back to pending; ``False`` if it was not running."""

    @abstractmethod
    def due(
        self, now: datetime, lease: timedelta, limit: int = 100
    ) -> List[ScheduledTransition]:
        """Jobs to run now, oldest first.

        Pending jobs whose ``run_at`` has passed plus running jobs whose claim
        expired.
        """
