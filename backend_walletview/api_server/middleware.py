"""
HTTP middleware — request timing and logging.

Logs every request with method, path, status and processing time, and returns
the processing time in the X-Process-Time-Ms response header.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from backend_walletview.walletview_logging import get_logger

logger = get_logger(__name__)

PROCESS_TIME_HEADER = "X-Process-Time-Ms"


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[PROCESS_TIME_HEADER] = str(duration_ms)
        logger.info(
            "request_processed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        return response
