"""One-shot snapshot reads of the AIS and GPS stores."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from fleetrecon._api.firestore import fetch_ais_records
from fleetrecon._api.realtime_db import fetch_gps_records
from fleetrecon._transport import Transport
from fleetrecon.config import ReconConfig
from fleetrecon.exceptions import SourceUnavailableError
from fleetrecon.models.ais import AisRecord
from fleetrecon.models.gps import GpsRecord
from fleetrecon.models.target import DataSource, ReconciliationResult
from fleetrecon.state.reconcile import reconcile

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Snapshot:
    """Result of one fetch.  ``None`` marks a side whose read failed."""

    ais: list[AisRecord] | None
    gps: dict[str, GpsRecord] | None

    @property
    def unavailable_sources(self) -> tuple[DataSource, ...]:
        missing: list[DataSource] = []
        if self.ais is None:
            missing.append(DataSource.AIS)
        if self.gps is None:
            missing.append(DataSource.GPS)
        return tuple(missing)


async def _safe_get(label: DataSource, fn: Callable[[], Awaitable[T]]) -> T | None:
    """Run one read, reporting failure as ``None`` instead of raising."""
    try:
        return await fn()
    except Exception:
        _logger.warning("%s snapshot read failed", label, exc_info=True)
        return None


class SnapshotFetcher:
    """Reads both stores concurrently; never mutates remote state."""

    def __init__(self, config: ReconConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def fetch(self) -> Snapshot:
        ais, gps = await asyncio.gather(
            _safe_get(DataSource.AIS, lambda: fetch_ais_records(self._config, self._transport)),
            _safe_get(DataSource.GPS, lambda: fetch_gps_records(self._config, self._transport)),
        )
        return Snapshot(ais=ais, gps=gps)

    async def compute_reconciliation(self) -> ReconciliationResult:
        """Fetch both snapshots and reconcile them.

        Raises
        ------
        SourceUnavailableError
            Only when both reads failed.  A single failure yields a
            partial result (see ``ReconciliationResult.unavailable_sources``).
        """
        snapshot = await self.fetch()
        missing = snapshot.unavailable_sources
        if len(missing) == len(DataSource):
            raise SourceUnavailableError(
                "Both AIS and GPS snapshot reads failed",
                sources=tuple(str(source) for source in missing),
            )
        return reconcile(snapshot.ais, snapshot.gps)
