"""Request logging middleware."""

import time
from typing import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

# Load balancer probes would drown everything else
_QUIET_PATHS = frozenset({"/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with timing and the workspace it targeted.

    Context bound here (request ID, pinned workspace) is attached to every
    log line emitted while the request is handled, including the service
    layer's ``permission_denied`` and ``invitation_accepted`` events.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()
        request_id = getattr(request.state, "request_id", "unknown")

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        pinned_workspace = request.headers.get("X-Workspace-Id")
        if pinned_workspace:
            structlog.contextvars.bind_contextvars(workspace_header=pinned_workspace)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration_ms=_elapsed_ms(start_time),
            )
            raise

        fields = {"status_code": response.status_code, "duration_ms": _elapsed_ms(start_time)}
        if response.status_code >= 500:
            logger.error("request_completed", **fields)
        elif request.url.path in _QUIET_PATHS:
            logger.debug("request_completed", **fields)
        else:
            logger.info("request_completed", **fields)
        return response


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
