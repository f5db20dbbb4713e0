"""
MouzaForm Backend — Request Timeout Middleware
================================================

What:  Abandons a request that runs longer than `request_timeout_seconds`.
Why:   A stuck store round-trip should not hold the client connection open
       indefinitely.
How:   Wraps the downstream call in asyncio.wait_for; on expiry returns the
       standard 500 error body with code `request_timeout`.

Excluded paths:
    /health, /docs, /openapi.json, /redoc
"""

import asyncio
import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from mouzaform.config import settings
from mouzaform.middleware.request_context import request_id_var

logger = logging.getLogger(__name__)


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """
    Per-request deadline.

    Args:
        timeout: seconds; None reads settings.request_timeout_seconds,
                 0 disables the deadline.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, timeout: Optional[float] = None, **kwargs):
        super().__init__(app, **kwargs)
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return settings.request_timeout_seconds if self._timeout is None else self._timeout

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        timeout = self.timeout
        if not timeout or request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        try:
            return await asyncio.wait_for(call_next(request), timeout=timeout)
        except asyncio.TimeoutError:
            rid = request_id_var.get("")
            logger.error(
                "[%s] %s %s exceeded %.1fs",
                rid, request.method, request.url.path, timeout,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "message": "The request took too long to complete",
                    "error": {"code": "request_timeout", "timeout_seconds": timeout},
                    "request_id": rid,
                },
            )
