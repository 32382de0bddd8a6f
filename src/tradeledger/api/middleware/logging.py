"""
Request logging.

Every event logged while a request runs carries its request ID plus the
calling user and business taken from the identity headers. Writes are
logged at info level, reads at debug, and health probes are not logged.
"""

import time
import uuid
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from tradeledger.config import get_logger
from tradeledger.config.logging import bind_request_context, clear_request_context

logger = get_logger(__name__)

WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
QUIET_PREFIXES = ("/api/health",)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id

        clear_request_context()
        bind_request_context(
            request_id=request_id,
            user_id=request.headers.get("X-User-Id"),
            business_id=request.headers.get("X-Business-Id"),
        )

        path = request.url.path
        quiet = path.startswith(QUIET_PREFIXES)
        log = logger.info if request.method in WRITE_METHODS else logger.debug
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=path,
                error=str(e),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        if not quiet:
            log(
                "request_handled",
                method=request.method,
                path=path,
                status=response.status_code,
                duration_ms=round(elapsed_ms, 2),
            )
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
        return response
