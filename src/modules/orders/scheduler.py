"""Auto-progression of shop orders.

A shop order walks ``in_production → completed → shipped → delivered`` on
its own.  Each step is stored as a ``ScheduledTransition`` row at checkout
time and executed later by a Celery task, so pending steps survive a worker
restart:

- ``schedule`` persists the steps and, once the checkout transaction
  commits, enqueues one ETA task per step.
- ``dispatch_due`` is run periodically by Celery beat and picks up any step
  whose ETA task was lost.
- ``run`` claims a step (``pending`` → ``running``) so it executes at most
  once, then applies it through ``FulfillmentService`` as the system actor.
  A claim older than ``AUTO_PROGRESSION_CLAIM_LEASE`` seconds belongs to a
  dead worker and may be taken over.

A step whose order has moved past it (for example a manager cancelled it)
is skipped.  A step that runs before its predecessor finished is released
back to ``pending`` and retried by a later sweep.  Failures are recorded on
the row and logged, never raised.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.accounts.services import SYSTEM_ACTOR
from modules.orders.constants import AUTO_PROGRESSION_STEPS
from modules.orders.exceptions import InvalidTransition

if TYPE_CHECKING:
    from datetime import datetime

    from modules.orders.models import Order, ScheduledTransition
    from modules.orders.repositories.interfaces import (
        IOrderRepository,
        IScheduledTransitionRepository,
    )
    from modules.orders.services import FulfillmentService

logger = structlog.get_logger(__name__)

OUTCOME_DONE = "done"
OUTCOME_SKIPPED = "skipped"
OUTCOME_FAILED = "failed"
OUTCOME_IGNORED = "ignored"
OUTCOME_DEFERRED = "deferred"

# Statuses a shop order walks through, in order.
_PROGRESSION = (AUTO_PROGRESSION_STEPS[0][0],) + tuple(
    target for _, target in AUTO_PROGRESSION_STEPS
)


def _is_behind(current: str, expected: str) -> bool:
    """True while *current* has not yet reached *expected* on the progression."""
    if current not in _PROGRESSION:
        return False
    return _PROGRESSION.index(current) < _PROGRESSION.index(expected)


def enqueue_step(job: ScheduledTransition) -> None:
    """Send the ETA task for one step to the broker.

    A broker outage is logged only: the periodic dispatcher runs the step
    once it is due.
    """
    from modules.orders.tasks import run_scheduled_transition

    try:
        run_scheduled_transition.apply_async(args=[str(job.id)], eta=job.run_at)
    except Exception as exc:
        logger.warning(
            "scheduler.enqueue_failed",
            job_id=str(job.id),
            order_id=str(job.order_id),
            error=str(exc),
        )


class AutoProgressionScheduler:
    def __init__(
        self,
        job_repository: IScheduledTransitionRepository,
        order_repository: IOrderRepository,
        fulfillment_service: FulfillmentService,
        delays: Optional[Sequence[int]] = None,
        lease: Optional[int] = None,
        enqueue: Callable[[ScheduledTransition], None] = enqueue_step,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._job_repo = job_repository
        self._order_repo = order_repository
        self._fulfillment = fulfillment_service
        self._delays = tuple(
            delays if delays is not None else settings.AUTO_PROGRESSION_DELAYS
        )
        if lease is None:
            lease = settings.AUTO_PROGRESSION_CLAIM_LEASE
        self._lease = timedelta(seconds=lease)
        self._enqueue = enqueue
        self._clock = clock

        if len(self._delays) != len(AUTO_PROGRESSION_STEPS):
            raise ValueError(
                f"Expected {len(AUTO_PROGRESSION_STEPS)} auto-progression delays, "
                f"got {len(self._delays)}"
            )

    def schedule(
        self, order: Order, start: Optional[datetime] = None
    ) -> List[ScheduledTransition]:
        """Persist the auto-progression steps for a shop order.

        Delays are measured from *start* (default: now).  The ETA tasks are
        only sent once the surrounding transaction commits.
        """
        start = start or self._clock()
        steps = [
            (expected, target, start + timedelta(seconds=delay))
            for (expected, target), delay in zip(AUTO_PROGRESSION_STEPS, self._delays)
        ]
        jobs = self._job_repo.create_steps(str(order.id), steps)
        for job in jobs:
            transaction.on_commit(lambda job=job: self._enqueue(job))

        logger.info(
            "scheduler.order_scheduled",
            order_id=str(order.id),
            run_at=[job.run_at.isoformat() for job in jobs],
        )
        return jobs

    def run(self, job_id: str) -> str:
        """Execute one step; return its outcome."""
        log = logger.bind(job_id=str(job_id))

        job = self._job_repo.claim(str(job_id), self._clock(), self._lease)
        if job is None:
            log.info("scheduler.step_already_claimed")
            return OUTCOME_IGNORED

        log = log.bind(
            order_id=str(job.order_id),
            expected_status=job.expected_status,
            target_status=job.target_status,
        )

        order = self._order_repo.get_by_id(str(job.order_id))
        if order is None:
            job.mark_as_failed("Order no longer exists.")
            log.error("scheduler.order_missing")
            return OUTCOME_FAILED

        if _is_behind(order.status, job.expected_status):
            self._job_repo.release(str(job.id))
            log.info("scheduler.step_deferred", current_status=order.status)
            return OUTCOME_DEFERRED

        if order.status != job.expected_status:
            job.mark_as_skipped(f"Order is {order.status}.")
            log.info("scheduler.step_skipped", current_status=order.status)
            return OUTCOME_SKIPPED

        try:
            self._fulfillment.apply_transition(
                order.id, job.target_status, SYSTEM_ACTOR.role, SYSTEM_ACTOR.user_id
            )
        except InvalidTransition as exc:
            job.mark_as_skipped(str(exc))
            log.info("scheduler.step_skipped", reason=str(exc))
            return OUTCOME_SKIPPED
        except Exception as exc:
            job.mark_as_failed(str(exc))
            log.exception("scheduler.step_failed")
            return OUTCOME_FAILED

        job.mark_as_done()
        log.info("scheduler.step_done")
        return OUTCOME_DONE

    def dispatch_due(self, limit: int = 100) -> Dict[str, int]:
        """Run every overdue pending step and every step with an expired claim."""
        outcomes = {
            OUTCOME_DONE: 0,
            OUTCOME_SKIPPED: 0,
            OUTCOME_FAILED: 0,
            OUTCOME_IGNORED: 0,
            OUTCOME_DEFERRED: 0,
        }
        for job in self._job_repo.due(self._clock(), self._lease, limit=limit):
            outcomes[self.run(str(job.id))] += 1

        if any(outcomes.values()):
            logger.info("scheduler.dispatch_finished", **outcomes)
        return outcomes
