"""Custom exception hierarchy for fleetrecon."""

from __future__ import annotations


class ReconError(Exception):
    """Base exception for all fleetrecon errors."""


class ReconConfigError(ReconError):
    """Invalid or missing configuration."""


class ReconTransportError(ReconError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class PermissionDeniedError(ReconTransportError):
    """The remote store rejected the request (HTTP 401/403, revoked stream).

    On the feed-flag listener this resolves the channel to ``False``
    rather than propagating.
    """


class SourceUnavailableError(ReconError):
    """A snapshot read failed.

    Single-source failures are absorbed by the fetcher (the side is
    downgraded to zero records).  Raised to the caller only when every
    source failed.
    """

    def __init__(self, message: str, *, sources: tuple[str, ...] = ()) -> None:
        self.sources = sources
        super().__init__(message)


class ToggleRejectedError(ReconError):
    """A feed toggle was not applied (write failed or channel not ready)."""


class NotReadyError(ToggleRejectedError):
    """Toggle attempted while the feed state is unknown or a toggle is in flight.

    No remote write is performed when this is raised.
    """
