"""Feed-enablement state model."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class FeedStatus(StrEnum):
    UNKNOWN = "unknown"
    ENABLED = "enabled"
    DISABLED = "disabled"


class FeedState(BaseModel):
    """Snapshot of the feed control channel.

    Parameters
    ----------
    enabled : bool or None
        ``None`` while unresolved; otherwise the resolved flag value.
    toggling : bool
        ``True`` while a toggle write is in flight.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool | None = None
    toggling: bool = False

    @property
    def status(self) -> FeedStatus:
        if self.enabled is None:
            return FeedStatus.UNKNOWN
        return FeedStatus.ENABLED if self.enabled else FeedStatus.DISABLED

    @property
    def is_resolved(self) -> bool:
        return self.enabled is not None

    @property
    def can_toggle(self) -> bool:
        return self.enabled is not None and not self.toggling
