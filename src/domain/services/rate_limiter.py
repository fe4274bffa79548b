"""Per-caller rate limiting for invitation operations.

Counters live in a ``limits`` async storage, so the same limiter works
against process memory or a shared backend such as Redis.
"""

import time
from uuid import UUID

import structlog
from limits import RateLimitItem, RateLimitItemPerSecond
from limits.aio.storage import Storage
from limits.aio.strategies import FixedWindowRateLimiter

from core.exceptions import RateLimitExceededError

logger = structlog.get_logger()


class InvitationRateLimiter:
    """Caps how often a single user may create or accept invitations."""

    def __init__(
        self,
        storage: Storage,
        create_limit: int,
        accept_limit: int,
        window_seconds: int,
    ) -> None:
        self._strategy = FixedWindowRateLimiter(storage)
        self._create = RateLimitItemPerSecond(create_limit, window_seconds)
        self._accept = RateLimitItemPerSecond(accept_limit, window_seconds)

    async def check_create(self, user_id: UUID) -> None:
        await self._check("invitation_create", user_id, self._create)

    async def check_accept(self, user_id: UUID) -> None:
        await self._check("invitation_accept", user_id, self._accept)

    async def _check(self, scope: str, user_id: UUID, item: RateLimitItem) -> None:
        if await self._strategy.hit(item, scope, str(user_id)):
            return

        stats = await self._strategy.get_window_stats(item, scope, str(user_id))
        retry_after = max(1, int(stats.reset_time - time.time()))
        logger.warning("rate_limit_exceeded", scope=scope, user_id=str(user_id))
        raise RateLimitExceededError(scope, retry_after)
