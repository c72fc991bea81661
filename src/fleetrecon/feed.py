"""Feed-enablement control channel.

A small state machine over the remote feed flag::

    Unknown --listener value--> Resolved(value)
    Unknown --listener error--> Resolved(False)
    Unknown --timeout---------> Resolved(False)
    Resolved --toggle---------> Toggling --write ok--> Resolved(not value)
                                         --write err-> Resolved(value)

The timeout is a set-once resolve: it only acts while the state is still
``Unknown`` and never overwrites a value the listener delivered first.
All transitions run on the event loop that created the subscription.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from fleetrecon._api.realtime_db import read_flag, watch_flag, write_flag
from fleetrecon._transport import Transport
from fleetrecon.config import ReconConfig
from fleetrecon.exceptions import NotReadyError, PermissionDeniedError, ToggleRejectedError
from fleetrecon.models.feed import FeedState

_logger = logging.getLogger(__name__)

FeedCallback = Callable[[FeedState], None]


class FeedControlChannel:
    """Live view of the feed flag with an exactly-once toggle.

    Usage::

        channel = FeedControlChannel(config, transport)
        unsubscribe = channel.subscribe(lambda state: print(state.status))
        ...
        enabled = await channel.toggle()
        unsubscribe()
    """

    def __init__(
        self,
        config: ReconConfig,
        transport: Transport,
        *,
        resolve_timeout: float | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._resolve_timeout = config.feed_resolve_timeout if resolve_timeout is None else resolve_timeout
        self._state = FeedState()
        self._on_change: FeedCallback | None = None
        self._listener_task: asyncio.Task[None] | None = None
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._generation = 0
        self._cancelled = True

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def is_subscribed(self) -> bool:
        return not self._cancelled

    # ------------------------------------------------------------------
    # Subscription lifecycle
    # ------------------------------------------------------------------

    def subscribe(self, on_change: FeedCallback | None = None) -> Callable[[], None]:
        """Start a fresh subscription in the ``Unknown`` state.

        Any previous subscription on this channel is released first.
        Must be called from a running event loop.

        Returns
        -------
        Callable[[], None]
            Releases this subscription.  Calling it after a newer
            subscription started is a no-op.
        """
        loop = asyncio.get_running_loop()
        self._release()

        self._generation += 1
        generation = self._generation
        self._cancelled = False
        self._on_change = on_change
        self._state = FeedState()

        self._listener_task = loop.create_task(self._listen(generation))
        self._timeout_handle = loop.call_later(
            self._resolve_timeout,
            self._resolve_if_unknown,
            False,
            generation,
        )

        def unsubscribe() -> None:
            if generation == self._generation:
                self._release()

        return unsubscribe

    def unsubscribe(self) -> None:
        """Release the current subscription, if any."""
        self._release()

    async def aclose(self) -> None:
        """Release the subscription and wait for the listener task to finish."""
        task = self._listener_task
        self._release()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _release(self) -> None:
        self._cancelled = True
        self._on_change = None
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None
        task = self._listener_task
        self._listener_task = None
        if task is not None and not task.done():
            task.cancel()

    def _is_current(self, generation: int) -> bool:
        return not self._cancelled and generation == self._generation

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _update(self, state: FeedState) -> None:
        if state == self._state:
            return
        self._state = state
        callback = self._on_change
        if callback is None:
            return
        try:
            callback(state)
        except Exception:
            _logger.debug("Feed state callback failed", exc_info=True)

    def _resolve(self, value: bool) -> None:
        self._update(FeedState(enabled=value, toggling=self._state.toggling))

    def _resolve_if_unknown(self, value: bool, generation: int) -> None:
        if not self._is_current(generation) or self._state.is_resolved:
            return
        _logger.debug("Feed flag unresolved after %.1fs; defaulting to %s", self._resolve_timeout, value)
        self._resolve(value)

    async def _listen(self, generation: int) -> None:
        try:
            async for value in watch_flag(self._config, self._transport):
                if not self._is_current(generation):
                    return
                self._resolve(value)
        except PermissionDeniedError:
            _logger.warning("Feed flag listener denied; treating feed as disabled")
            if self._is_current(generation):
                self._resolve(False)
        except Exception:
            _logger.warning("Feed flag listener failed; treating feed as disabled", exc_info=True)
            if self._is_current(generation):
                self._resolve(False)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def read_once(self) -> bool:
        """Read the remote flag without touching the channel state."""
        return await read_flag(self._config, self._transport)

    async def toggle(self) -> bool:
        """Write the negation of the resolved flag value.

        Returns
        -------
        bool
            The new flag value.

        Raises
        ------
        NotReadyError
            If the state is ``Unknown``, a toggle is already in flight,
            or the channel is not subscribed.  Nothing is written.
        ToggleRejectedError
            If the remote write failed.  The prior value is kept and the
            write is not retried.
        """
        state = self._state
        if self._cancelled or not state.can_toggle:
            raise NotReadyError(f"Feed toggle not ready (status={state.status}, toggling={state.toggling})")

        generation = self._generation
        target = not state.enabled
        self._update(FeedState(enabled=state.enabled, toggling=True))
        try:
            new_value = await write_flag(self._config, self._transport, target)
        except Exception as exc:
            if self._is_current(generation):
                self._update(FeedState(enabled=self._state.enabled, toggling=False))
            raise ToggleRejectedError(f"Feed toggle to {target} failed: {exc}") from exc
        except asyncio.CancelledError:
            if self._is_current(generation):
                self._update(FeedState(enabled=self._state.enabled, toggling=False))
            raise

        if self._is_current(generation):
            self._update(FeedState(enabled=new_value, toggling=False))
        _logger.debug("Feed flag toggled to %s", new_value)
        return new_value
