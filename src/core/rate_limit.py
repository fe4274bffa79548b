"""HTTP rate limiting using slowapi.

This is the coarse per-client limit applied by route decorators. The
per-user invitation budgets live in ``domain.services.rate_limiter``.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import settings
from core.exceptions import ErrorCode


def client_address(request: Request) -> str:
    """Address of the client that sent the request.

    ``X-Forwarded-For`` is only honoured when the peer is a trusted proxy,
    and then the right-most hop that is not itself a trusted proxy wins.
    Everything left of that hop is client-controlled and ignored.
    """
    peer = get_remote_address(request)
    trusted = settings.trusted_proxies_list
    forwarded_for = request.headers.get("X-Forwarded-For")
    if not forwarded_for or peer not in trusted:
        return peer

    hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return peer


limiter = Limiter(
    key_func=client_address,
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render slowapi rejections in the same shape as RateLimitExceededError."""
    detail = exc.detail if isinstance(exc, RateLimitExceeded) else str(exc)
    return JSONResponse(
        status_code=429,
        content={
            "error_code": ErrorCode.RATE_LIMIT_EXCEEDED.value,
            "message": f"Rate limit exceeded: {detail}",
            "details": {"scope": "request", "limit": str(detail)},
        },
    )
