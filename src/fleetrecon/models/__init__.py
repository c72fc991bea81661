"""Data models for fleetrecon."""

from fleetrecon.models.ais import AisRecord
from fleetrecon.models.feed import FeedState, FeedStatus
from fleetrecon.models.gps import GpsRecord
from fleetrecon.models.target import DataSource, ReconciliationResult, Target, TargetSource

__all__ = [
    "AisRecord",
    "DataSource",
    "FeedState",
    "FeedStatus",
    "GpsRecord",
    "ReconciliationResult",
    "Target",
    "TargetSource",
]
