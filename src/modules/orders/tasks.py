"""Celery tasks for shop order auto-progression."""

import structlog
from celery import shared_task

from modules.orders.factories import build_scheduler

logger = structlog.get_logger(__name__)


@shared_task(name="orders.run_scheduled_transition")
def run_scheduled_transition(job_id):
    """Execute one persisted auto-progression step."""
    outcome = build_scheduler().run(job_id)
    return {"job_id": job_id, "outcome": outcome}


@shared_task(name="orders.dispatch_due_transitions")
def dispatch_due_transitions():
    """Periodic sweep for steps whose ETA task never ran."""
    outcomes = build_scheduler().dispatch_due()
    logger.debug("dispatch_due_transitions.executed", **outcomes)
    return outcomes
