"""Periodic fetch-and-reconcile scheduler."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from fleetrecon.exceptions import ReconError
from fleetrecon.models.target import ReconciliationResult

_logger = logging.getLogger(__name__)

ResultCallback = Callable[[ReconciliationResult], None]
ErrorCallback = Callable[[Exception], None]


class PollScheduler:
    """Runs *fetch* immediately and then every *interval* seconds.

    Single-flight: a tick that fires while a fetch is outstanding is
    skipped.  Every dispatch captures a generation number; a result is
    delivered only while its generation is the latest one issued and the
    scheduler is running, so an out-of-order completion (e.g. a periodic
    fetch finishing after a manual :meth:`refresh`) is discarded.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[ReconciliationResult]],
        *,
        interval: float,
        on_result: ResultCallback,
        on_error: ErrorCallback | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._fetch = fetch
        self._interval = interval
        self._on_result = on_result
        self._on_error = on_error
        self._generation = 0
        self._running = False
        self._timer_task: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def generation(self) -> int:
        """Generation of the most recently dispatched fetch."""
        return self._generation

    def start(self) -> Callable[[], None]:
        """Begin polling on the running event loop and return :meth:`stop`."""
        if self._running:
            raise ReconError("PollScheduler already started")
        loop = asyncio.get_running_loop()
        self._running = True
        self._timer_task = loop.create_task(self._run())
        return self.stop

    def stop(self) -> None:
        """Cancel the timer and any in-flight fetch; their results are discarded."""
        if not self._running and self._timer_task is None:
            return
        self._running = False
        # Invalidate whatever is still outstanding.
        self._generation += 1
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None
        for task in list(self._pending):
            task.cancel()
        self._inflight = None

    async def aclose(self) -> None:
        """Stop and wait for cancelled tasks to unwind."""
        tasks = [t for t in (self._timer_task, *self._pending) if t is not None]
        self.stop()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def refresh(self) -> None:
        """Dispatch a fetch now, superseding any in-flight one."""
        if not self._running:
            raise ReconError("PollScheduler is not running")
        self._dispatch()

    async def _run(self) -> None:
        while self._running:
            self._tick()
            await asyncio.sleep(self._interval)

    def _tick(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            _logger.debug("Poll tick skipped; generation %d still in flight", self._generation)
            return
        self._dispatch()

    def _dispatch(self) -> None:
        self._generation += 1
        task = asyncio.get_running_loop().create_task(self._fetch_and_deliver(self._generation))
        self._inflight = task
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _is_latest(self, generation: int) -> bool:
        return self._running and generation == self._generation

    async def _fetch_and_deliver(self, generation: int) -> None:
        try:
            result = await self._fetch()
        except Exception as exc:
            if not self._is_latest(generation):
                return
            _logger.warning("Poll fetch generation %d failed: %s", generation, exc)
            if self._on_error is not None:
                try:
                    self._on_error(exc)
                except Exception:
                    _logger.debug("Poll error callback failed", exc_info=True)
            return

        if not self._is_latest(generation):
            _logger.debug("Discarding stale poll result generation %d (latest %d)", generation, self._generation)
            return
        try:
            self._on_result(result)
        except Exception:
            _logger.debug("Poll result callback failed", exc_info=True)
