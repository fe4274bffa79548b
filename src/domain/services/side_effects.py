"""Fire-and-forget execution of best-effort side effects.

Audit appends and invitation emails run after the primary transaction has
committed. Their failures go to the ``side_effect_failed`` log event and
never reach the caller of the primary operation.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()

SideEffect = Callable[[], Awaitable[Any]]


class SideEffectDispatcher(Protocol):
    """Runs side effects detached from the caller's outcome."""

    async def dispatch(self, name: str, effect: SideEffect) -> None:
        """Schedule ``effect``. Never raises because of the effect itself."""
        ...


async def _run(name: str, effect: SideEffect) -> None:
    try:
        await effect()
    except Exception:
        logger.exception("side_effect_failed", side_effect=name)


class InlineDispatcher:
    """Runs each side effect immediately, still isolating its failures."""

    async def dispatch(self, name: str, effect: SideEffect) -> None:
        await _run(name, effect)


class BackgroundDispatcher:
    """Queues side effects for a single worker task.

    ``start`` and ``stop`` are called from the application lifespan. Until the
    worker is running, effects are executed inline so nothing is lost.
    """

    def __init__(self, max_queue_size: int = 1000) -> None:
        self._queue: asyncio.Queue[tuple[str, SideEffect]] = asyncio.Queue(
            maxsize=max_queue_size
        )
        self._worker: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def dispatch(self, name: str, effect: SideEffect) -> None:
        if not self.running:
            await _run(name, effect)
            return
        try:
            self._queue.put_nowait((name, effect))
        except asyncio.QueueFull:
            logger.warning("side_effect_dropped", side_effect=name, reason="queue_full")

    def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._work(), name="side-effect-worker")
        logger.info("side_effect_worker_started")

    async def stop(self, timeout: float = 5.0) -> None:
        """Drain queued effects (bounded by ``timeout``) and stop the worker."""
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("side_effect_drain_timeout", pending=self._queue.qsize())
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("side_effect_worker_stopped")

    async def _work(self) -> None:
        while True:
            name, effect = await self._queue.get()
            try:
                await _run(name, effect)
            finally:
                self._queue.task_done()
