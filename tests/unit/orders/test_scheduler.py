"""Unit tests for AutoProgressionScheduler with mocked dependencies."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.accounts.constants import Role
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import InvalidTransition
from modules.orders.scheduler import (
    OUTCOME_DEFERRED,
    OUTCOME_DONE,
    OUTCOME_FAILED,
    OUTCOME_IGNORED,
    OUTCOME_SKIPPED,
    AutoProgressionScheduler,
)

pytestmark = pytest.mark.unit

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
LEASE = timedelta(seconds=300)


def _job(expected=OrderStatus.IN_PRODUCTION, target=OrderStatus.COMPLETED, order_id=None):
    return MagicMock(
        id=uuid4(),
        order_id=order_id or uuid4(),
        expected_status=expected,
        target_status=target,
    )


@pytest.fixture()
def deps():
    job_repo = MagicMock()
    order_repo = MagicMock()
    fulfillment = MagicMock()
    enqueue = MagicMock()
    scheduler = AutoProgressionScheduler(
        job_repository=job_repo,
        order_repository=order_repo,
        fulfillment_service=fulfillment,
        delays=(3, 6, 9),
        lease=300,
        enqueue=enqueue,
        clock=lambda: NOW,
    )
    return scheduler, job_repo, order_repo, fulfillment, enqueue


class TestSchedule:
    def test_persists_three_steps_relative_to_start(self, deps):
        scheduler, job_repo, _, _, _ = deps
        order = SimpleNamespace(id=uuid4())
        job_repo.create_steps.return_value = []

        scheduler.schedule(order, start=NOW)

        order_id, steps = job_repo.create_steps.call_args.args
        assert order_id == str(order.id)
        assert steps == [
            (OrderStatus.IN_PRODUCTION, OrderStatus.COMPLETED, NOW + timedelta(seconds=3)),
            (OrderStatus.COMPLETED, OrderStatus.SHIPPED, NOW + timedelta(seconds=6)),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED, NOW + timedelta(seconds=9)),
        ]

    def test_tasks_enqueued_only_after_commit(
        self, deps, django_capture_on_commit_callbacks
    ):
        scheduler, job_repo, _, _, enqueue = deps
        jobs = [
            MagicMock(run_at=NOW + timedelta(seconds=s)) for s in (3, 6, 9)
        ]
        job_repo.create_steps.return_value = jobs

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            scheduler.schedule(SimpleNamespace(id=uuid4()), start=NOW)
            enqueue.assert_not_called()

        assert len(callbacks) == 3
        for callback in callbacks:
            callback()
        assert [c.args[0] for c in enqueue.call_args_list] == jobs

    def test_rejects_wrong_number_of_delays(self):
        with pytest.raises(ValueError):
            AutoProgressionScheduler(MagicMock(), MagicMock(), MagicMock(), delays=(1, 2))


class TestRun:
    def test_applies_step_as_system_actor(self, deps):
        scheduler, job_repo, order_repo, fulfillment, _ = deps
        job = _job()
        job_repo.claim.return_value = job
        order_repo.get_by_id.return_value = SimpleNamespace(
            id=job.order_id, status=OrderStatus.IN_PRODUCTION
        )

        outcome = scheduler.run(str(job.id))

        job_repo.claim.assert_called_once_with(str(job.id), NOW, LEASE)
        assert outcome == OUTCOME_DONE
        fulfillment.apply_transition.assert_called_once_with(
            job.order_id, OrderStatus.COMPLETED, Role.SYSTEM, None
        )
        job.mark_as_done.assert_called_once_with()

    def test_already_claimed_step_is_ignored(self, deps):
        scheduler, job_repo, _, fulfillment, _ = deps
        job_repo.claim.return_value = None

        assert scheduler.run(str(uuid4())) == OUTCOME_IGNORED
        fulfillment.apply_transition.assert_not_called()

    def test_order_that_moved_on_is_skipped(self, deps):
        scheduler, job_repo, order_repo, fulfillment, _ = deps
        job = _job(OrderStatus.COMPLETED, OrderStatus.SHIPPED)
        job_repo.claim.return_value = job
        order_repo.get_by_id.return_value = SimpleNamespace(
            id=job.order_id, status=OrderStatus.CANCELLED
        )

        assert scheduler.run(str(job.id)) == OUTCOME_SKIPPED
        fulfillment.apply_transition.assert_not_called()
        job.mark_as_skipped.assert_called_once_with("Order is cancelled.")

    def test_step_that_ran_early_is_released(self, deps):
        scheduler, job_repo, order_repo, fulfillment, _ = deps
        job = _job(OrderStatus.SHIPPED, OrderStatus.DELIVERED)
        job_repo.claim.return_value = job
        order_repo.get_by_id.return_value = SimpleNamespace(
            id=job.order_id, status=OrderStatus.IN_PRODUCTION
        )

        assert scheduler.run(str(job.id)) == OUTCOME_DEFERRED
        job_repo.release.assert_called_once_with(str(job.id))
        fulfillment.apply_transition.assert_not_called()
        job.mark_as_skipped.assert_not_called()

    def test_order_past_the_step_is_skipped(self, deps):
        scheduler, job_repo, order_repo, fulfillment, _ = deps
        job = _job()
        job_repo.claim.return_value = job
        order_repo.get_by_id.return_value = SimpleNamespace(
            id=job.order_id, status=OrderStatus.SHIPPED
        )

        assert scheduler.run(str(job.id)) == OUTCOME_SKIPPED
        job_repo.release.assert_not_called()
        fulfillment.apply_transition.assert_not_called()

    def test_lost_race_is_a_skip(self, deps):
        scheduler, job_repo, order_repo, fulfillment, _ = deps
        job = _job()
        job_repo.claim.return_value = job
        order_repo.get_by_id.return_value = SimpleNamespace(
            id=job.order_id, status=OrderStatus.IN_PRODUCTION
        )
        fulfillment.apply_transition.side_effect = InvalidTransition(
            "cancelled", "completed"
        )

        assert scheduler.run(str(job.id)) == OUTCOME_SKIPPED
        job.mark_as_skipped.assert_called_once()
        job.mark_as_done.assert_not_called()

    def test_unexpected_error_is_recorded_not_raised(self, deps):
        scheduler, job_repo, order_repo, fulfillment, _ = deps
        job = _job()
        job_repo.claim.return_value = job
        order_repo.get_by_id.return_value = SimpleNamespace(
            id=job.order_id, status=OrderStatus.IN_PRODUCTION
        )
        fulfillment.apply_transition.side_effect = RuntimeError("db went away")

        assert scheduler.run(str(job.id)) == OUTCOME_FAILED
        job.mark_as_failed.assert_called_once_with("db went away")

    def test_missing_order_fails_the_step(self, deps):
        scheduler, job_repo, order_repo, _, _ = deps
        job = _job()
        job_repo.claim.return_value = job
        order_repo.get_by_id.return_value = None

        assert scheduler.run(str(job.id)) == OUTCOME_FAILED
        job.mark_as_failed.assert_called_once()


class TestDispatchDue:
    def test_runs_each_due_step_and_tallies_outcomes(self, deps):
        scheduler, job_repo, order_repo, _, _ = deps
        first, second = _job(), _job(OrderStatus.COMPLETED, OrderStatus.SHIPPED)
        job_repo.due.return_value = [first, second]
        job_repo.claim.side_effect = [first, None]
        order_repo.get_by_id.return_value = SimpleNamespace(
            id=first.order_id, status=OrderStatus.IN_PRODUCTION
        )

        outcomes = scheduler.dispatch_due()

        job_repo.due.assert_called_once_with(NOW, LEASE, limit=100)
        assert outcomes[OUTCOME_DONE] == 1
        assert outcomes[OUTCOME_IGNORED] == 1
