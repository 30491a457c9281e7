"""
Request-scoped logging for the orchestration API.

Every request gets a request id (the caller's X-Request-ID when present) and,
for issue-scoped routes, the issue number bound into structlog contextvars, so
the interpreter, reasoning and routing events logged while serving it can be
joined back to the request and the issue.
"""

import re
import time
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from epic_router.utils.logging import (
    bind_contextvars,
    clear_contextvars,
    generate_request_id,
    get_logger,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time-Ms"

_QUIET_PATHS = frozenset({"/health"})
_CONTEXT_PATH_RE = re.compile(r"^/context/(-?\d+)$")


def request_context(request: Request) -> dict[str, Any]:
    """Fields bound for the lifetime of one request."""
    context: dict[str, Any] = {
        "request_id": request.headers.get(REQUEST_ID_HEADER) or generate_request_id(),
        "method": request.method,
        "path": request.url.path,
    }
    match = _CONTEXT_PATH_RE.match(request.url.path)
    if match:
        context["issue_number"] = int(match.group(1))
    return context


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Binds request context, logs start and completion, and stamps
    X-Request-ID and X-Response-Time-Ms on the response.

    Requests to /health log at debug level.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        clear_contextvars()
        context = request_context(request)
        bind_contextvars(**context)

        log = logger.debug if request.url.path in _QUIET_PATHS else logger.info
        started = time.perf_counter()
        log("request_started", client=request.client.host if request.client else "unknown")

        try:
            response = await call_next(request)
            elapsed = _elapsed_ms(started)
            response.headers[REQUEST_ID_HEADER] = context["request_id"]
            response.headers[RESPONSE_TIME_HEADER] = str(elapsed)
            log("request_completed", status_code=response.status_code, duration_ms=elapsed)
            return response
        except Exception as exc:
            logger.error(
                "request_failed",
                duration_ms=_elapsed_ms(started),
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise
        finally:
            clear_contextvars()


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)
