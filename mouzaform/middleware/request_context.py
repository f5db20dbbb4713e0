"""
MouzaForm Backend — Request Context Middleware
================================================

What:  Gives each request an ID, makes it visible to every log line emitted
       while the request runs, and writes one access-log line at the end.
How:   The ID (client's X-Request-ID, or a short UUID) lives in a ContextVar.
       RequestIDLogFilter copies it onto each LogRecord as `request_id`, so
       setup_logging's format can print it for service and gateway loggers
       alike. The access line goes to `mouzaform.access`; its level follows
       the status code (5xx ERROR, 4xx WARNING, else INFO).

Submitted form contents are never logged here.
"""

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

access_logger = logging.getLogger("mouzaform.access")

# Probes would drown the access log
QUIET_PATHS = {"/health"}


class RequestIDLogFilter(logging.Filter):
    """Stamp `record.request_id`; "-" outside of a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("") or "-"
        return True


def _status_level(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request-ID propagation plus access logging."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        start = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = rid

            if request.url.path not in QUIET_PATHS:
                access_logger.log(
                    _status_level(response.status_code),
                    "%s %s %d %.1fms from %s",
                    request.method,
                    request.url.path,
                    response.status_code,
                    (time.perf_counter() - start) * 1000,
                    request.client.host if request.client else "unknown",
                )
            return response
        finally:
            request_id_var.reset(token)
