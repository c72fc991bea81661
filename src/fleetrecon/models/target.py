"""Reconciled target and aggregate result models."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class TargetSource(StrEnum):
    AIS = "ais"
    GPS = "gps"
    MERGED = "merged"


class DataSource(StrEnum):
    """Snapshot sources read by the fetcher."""

    AIS = "ais"
    GPS = "gps"


class Target(BaseModel):
    """One dot on the merged view.  Carries no identity."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    source: TargetSource


class ReconciliationResult(BaseModel):
    """Aggregate output of one reconciliation.

    ``total_targets`` is derived from the three category counts and is
    never tracked separately.  ``targets`` order is not guaranteed.
    ``unavailable_sources`` lists the snapshot sides that could not be
    read; their records count as zero.
    """

    model_config = ConfigDict(frozen=True)

    ais_only: int = Field(default=0, ge=0)
    gps_only: int = Field(default=0, ge=0)
    merged: int = Field(default=0, ge=0)
    last_update: datetime | None = None
    targets: tuple[Target, ...] = ()
    unavailable_sources: frozenset[DataSource] = frozenset()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_targets(self) -> int:
        return self.ais_only + self.gps_only + self.merged

    @property
    def is_partial(self) -> bool:
        """Whether at least one snapshot side was unavailable."""
        return bool(self.unavailable_sources)

    def age_seconds(self, now: datetime | None = None) -> float | None:
        """Seconds elapsed since ``last_update``, or ``None`` when unknown.

        Naive datetimes, for *now* or ``last_update``, are taken as UTC.
        """
        if self.last_update is None:
            return None
        current = now if now is not None else datetime.now(UTC)
        if current.tzinfo is None:
            current = current.replace(tzinfo=UTC)
        last = self.last_update
        if last.tzinfo is None:
            last = last.replace(tzinfo=UTC)
        return (current - last).total_seconds()
