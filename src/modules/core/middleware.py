import time
import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()

MAX_CORRELATION_ID_LENGTH = 128


def _incoming_correlation_id(request: HttpRequest) -> str:
    cid = request.META.get("HTTP_X_REQUEST_ID") or request.META.get(
        "HTTP_X_CORRELATION_ID", ""
    )
    cid = cid.strip()
    if not cid or len(cid) > MAX_CORRELATION_ID_LENGTH or not cid.isprintable():
        return ""
    return cid


class CorrelationIdMiddleware:
    """Binds a correlation ID to every log line emitted during a request.

    Reuses ``X-Request-ID`` (or ``X-Correlation-ID``) from the client when it
    is short and printable, otherwise generates a UUID4.  The ID is echoed
    back in the ``X-Request-ID`` response header, so a scheduler or client
    log can be joined with the server log of the request that caused it.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = _incoming_correlation_id(request) or str(uuid.uuid4())
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        started = time.monotonic()
        logger.info(
            "request_started",
            method=request.method,
            path=request.get_full_path(),
        )

        response = self.get_response(request)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "request_finished",
            method=request.method,
            path=request.get_full_path(),
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )

        response["X-Request-ID"] = cid
        return response
