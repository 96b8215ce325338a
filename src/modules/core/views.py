import time
from datetime import timedelta
from typing import Any, Callable, Dict

import structlog
from django.conf import settings
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger()


def _timed(check: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    start = time.monotonic()
    result = check()
    result.setdefault("status", "up")
    result["response_time_ms"] = round((time.monotonic() - start) * 1000, 2)
    return result


def _check_database() -> Dict[str, Any]:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return {}


def _check_cache() -> Dict[str, Any]:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")
    return {}


def _check_scheduler() -> Dict[str, Any]:
    """Auto-progression backlog.

    Counts pending steps overdue by more than two sweeps and running steps
    whose claim outlived the lease (a worker died mid-step).
    """
    from modules.orders.models import JobStatus, ScheduledTransition

    now = timezone.now()
    grace = timedelta(seconds=2 * settings.AUTO_PROGRESSION_DISPATCH_INTERVAL)
    lease = timedelta(seconds=settings.AUTO_PROGRESSION_CLAIM_LEASE)
    overdue = ScheduledTransition.objects.filter(
        status=JobStatus.PENDING, run_at__lt=now - grace
    ).count()
    stalled = ScheduledTransition.objects.filter(
        status=JobStatus.RUNNING, attempted_at__lt=now - lease
    ).count()
    return {
        "status": "degraded" if overdue or stalled else "up",
        "overdue_steps": overdue,
        "stalled_steps": stalled,
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """GET /health: database and cache are required; the scheduler is advisory."""
    services: Dict[str, Dict[str, Any]] = {}
    overall_healthy = True

    for name, check, required in (
        ("database", _check_database, True),
        ("cache", _check_cache, True),
        ("scheduler", _check_scheduler, False),
    ):
        try:
            services[name] = _timed(check)
        except Exception:
            services[name] = {"status": "down"}
            overall_healthy = overall_healthy and not required
            logger.error(f"health_check_{name}_failure")

    status_code = 200 if overall_healthy else 503

    logger.info(
        "health_check_completed", status="healthy" if overall_healthy else "unhealthy"
    )

    return JsonResponse(
        {
            "status": "healthy" if overall_healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=status_code,
    )
