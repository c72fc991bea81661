"""fleetrecon - Async AIS/GPS target reconciliation and feed control."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fleetrecon")
except PackageNotFoundError:
    __version__ = "0+local"
from fleetrecon.app import ensure_initialized, get_client, shutdown
from fleetrecon.client import FleetReconClient
from fleetrecon.config import ReconConfig
from fleetrecon.exceptions import (
    NotReadyError,
    PermissionDeniedError,
    ReconConfigError,
    ReconError,
    ReconTransportError,
    SourceUnavailableError,
    ToggleRejectedError,
)
from fleetrecon.feed import FeedControlChannel
from fleetrecon.fetcher import Snapshot, SnapshotFetcher
from fleetrecon.ingestion.normalize import parse_instant
from fleetrecon.models import (
    AisRecord,
    DataSource,
    FeedState,
    FeedStatus,
    GpsRecord,
    ReconciliationResult,
    Target,
    TargetSource,
)
from fleetrecon.poller import PollScheduler
from fleetrecon.state.reconcile import reconcile

__all__ = [
    "__version__",
    "AisRecord",
    "DataSource",
    "FeedControlChannel",
    "FeedState",
    "FeedStatus",
    "FleetReconClient",
    "GpsRecord",
    "NotReadyError",
    "PermissionDeniedError",
    "PollScheduler",
    "ReconConfig",
    "ReconConfigError",
    "ReconError",
    "ReconTransportError",
    "ReconciliationResult",
    "Snapshot",
    "SnapshotFetcher",
    "SourceUnavailableError",
    "Target",
    "TargetSource",
    "ToggleRejectedError",
    "ensure_initialized",
    "get_client",
    "parse_instant",
    "reconcile",
    "shutdown",
]
