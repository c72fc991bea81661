"""High-level async client for the fleet reconciliation surfaces."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from fleetrecon._transport import RestTransport, Transport
from fleetrecon.config import ReconConfig
from fleetrecon.exceptions import ReconError
from fleetrecon.feed import FeedCallback, FeedControlChannel
from fleetrecon.fetcher import Snapshot, SnapshotFetcher
from fleetrecon.models.feed import FeedState
from fleetrecon.models.target import ReconciliationResult
from fleetrecon.poller import ErrorCallback, PollScheduler, ResultCallback

_logger = logging.getLogger(__name__)


class FleetReconClient:
    """Async client for the AIS/GPS reconciliation and the feed flag.

    Usage::

        async with FleetReconClient(config) as client:
            result = await client.compute_reconciliation()
            unsubscribe = client.subscribe_feed_state(print)
            stop = client.start_polling(handle_result)
    """

    def __init__(
        self,
        config: ReconConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._injected_transport = transport
        self._transport: Transport | None = None
        self._fetcher: SnapshotFetcher | None = None
        self._feed: FeedControlChannel | None = None
        self._pollers: list[PollScheduler] = []

    @property
    def config(self) -> ReconConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FleetReconClient:
        await self.ensure_initialized()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def ensure_initialized(self) -> None:
        """Create the HTTP session and transport once; later calls are no-ops."""
        if self._transport is not None:
            return
        if self._injected_transport is not None:
            self._transport = self._injected_transport
        else:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = RestTransport(
                self._http_session,
                request_timeout=self._config.request_timeout,
            )
        self._fetcher = SnapshotFetcher(self._config, self._transport)
        self._feed = FeedControlChannel(self._config, self._transport)

    async def close(self) -> None:
        """Stop pollers and the feed subscription, then release the session."""
        for poller in self._pollers:
            await poller.aclose()
        self._pollers.clear()
        if self._feed is not None:
            await self._feed.aclose()
            self._feed = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None
        self._fetcher = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_fetcher(self) -> SnapshotFetcher:
        if self._fetcher is None:
            raise ReconError("Client not initialized. Use 'async with FleetReconClient(...) as client:'")
        return self._fetcher

    def _require_feed(self) -> FeedControlChannel:
        if self._feed is None:
            raise ReconError("Client not initialized. Use 'async with FleetReconClient(...) as client:'")
        return self._feed

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def fetch_snapshot(self) -> Snapshot:
        """Read both stores without reconciling."""
        return await self._require_fetcher().fetch()

    async def compute_reconciliation(self) -> ReconciliationResult:
        """One-shot fetch and merge; raises only if both reads fail."""
        return await self._require_fetcher().compute_reconciliation()

    def start_polling(
        self,
        on_result: ResultCallback,
        *,
        interval: float | None = None,
        on_error: ErrorCallback | None = None,
    ) -> Callable[[], None]:
        """Start a :class:`PollScheduler` and return its ``stop``.

        *interval* defaults to ``config.poll_interval``.  Every scheduler
        started here is also stopped when the client closes.
        """
        fetcher = self._require_fetcher()
        poller = PollScheduler(
            fetcher.compute_reconciliation,
            interval=interval if interval is not None else self._config.poll_interval,
            on_result=on_result,
            on_error=on_error,
        )
        self._pollers.append(poller)
        return poller.start()

    # ------------------------------------------------------------------
    # Feed flag
    # ------------------------------------------------------------------

    @property
    def feed_state(self) -> FeedState:
        return self._require_feed().state

    def subscribe_feed_state(self, on_change: FeedCallback) -> Callable[[], None]:
        """Start observing the feed flag; returns ``unsubscribe``."""
        return self._require_feed().subscribe(on_change)

    async def toggle_feed_state(self) -> bool:
        """Flip the feed flag.  See :meth:`FeedControlChannel.toggle`."""
        return await self._require_feed().toggle()

    async def read_feed_state(self) -> bool:
        """One-shot read of the feed flag (missing reads as ``False``)."""
        return await self._require_feed().read_once()
