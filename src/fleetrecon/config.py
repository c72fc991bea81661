"""Client configuration for fleetrecon."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from fleetrecon.exceptions import ReconConfigError


@dataclasses.dataclass(frozen=True)
class ReconConfig:
    """Client configuration.

    Parameters
    ----------
    project_id : str
        Firebase/Google Cloud project that owns the AIS collection.
    database_url : str
        Realtime Database root URL (e.g.
        ``"https://example-default-rtdb.firebaseio.com"``).
    auth_token : str or None
        Opaque access token.  Sent as ``?auth=`` to the Realtime Database
        and as a bearer token to Firestore.  ``None`` relies on public
        security rules.
    firestore_base_url : str
        Firestore REST endpoint root.
    ais_collection : str
        Firestore collection holding AIS documents.
    gps_path : str
        Realtime Database path of the self-reported position tree.
    feed_flag_path : str
        Realtime Database path of the feed-enablement boolean.
    poll_interval : float
        Seconds between fetch-and-reconcile cycles.
    feed_resolve_timeout : float
        Seconds to wait for the first flag value before resolving the
        feed state to ``False``.
    request_timeout : float
        Total timeout for a single HTTP read or write, in seconds.
        Does not apply to the flag stream.
    page_size : int
        Firestore documents requested per page.
    """

    project_id: str
    database_url: str
    auth_token: str | None = None
    firestore_base_url: str = "https://firestore.googleapis.com/v1"
    ais_collection: str = "ais_vessels"
    gps_path: str = "user_locations"
    feed_flag_path: str = "ais_config/enabled"
    poll_interval: float = 30.0
    feed_resolve_timeout: float = 3.0
    request_timeout: float = 15.0
    page_size: int = 300

    def __post_init__(self) -> None:
        if not self.project_id.strip():
            raise ReconConfigError("project_id must be non-empty")
        if not self.database_url.strip():
            raise ReconConfigError("database_url must be non-empty")
        if self.poll_interval <= 0:
            raise ReconConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.feed_resolve_timeout < 0:
            raise ReconConfigError(f"feed_resolve_timeout must be >= 0, got {self.feed_resolve_timeout}")
        if self.page_size <= 0:
            raise ReconConfigError(f"page_size must be positive, got {self.page_size}")

    @property
    def ais_collection_url(self) -> str:
        """Full REST URL of the AIS collection."""
        base = self.firestore_base_url.rstrip("/")
        return f"{base}/projects/{self.project_id}/databases/(default)/documents/{self.ais_collection.strip('/')}"

    def database_path_url(self, path: str) -> str:
        """REST URL for a Realtime Database *path* (``.json`` suffixed)."""
        return f"{self.database_url.rstrip('/')}/{path.strip('/')}.json"

    @classmethod
    def from_env(cls, **overrides: Any) -> ReconConfig:
        """Create configuration from environment variables.

        Reads ``FLEETRECON_PROJECT_ID``, ``FLEETRECON_DATABASE_URL`` and
        the optional ``FLEETRECON_*`` variables below.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        ReconConfig
            Populated configuration.

        Raises
        ------
        ReconConfigError
            If a required value is missing or a numeric variable does
            not parse.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "FLEETRECON_PROJECT_ID": "project_id",
            "FLEETRECON_DATABASE_URL": "database_url",
            "FLEETRECON_AUTH_TOKEN": "auth_token",
            "FLEETRECON_FIRESTORE_BASE_URL": "firestore_base_url",
            "FLEETRECON_AIS_COLLECTION": "ais_collection",
            "FLEETRECON_GPS_PATH": "gps_path",
            "FLEETRECON_FEED_FLAG_PATH": "feed_flag_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "FLEETRECON_POLL_INTERVAL": ("poll_interval", float),
            "FLEETRECON_FEED_RESOLVE_TIMEOUT": ("feed_resolve_timeout", float),
            "FLEETRECON_REQUEST_TIMEOUT": ("request_timeout", float),
            "FLEETRECON_PAGE_SIZE": ("page_size", int),
        }
        for env_key, (field_name, caster) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = caster(val)
            except ValueError as exc:
                raise ReconConfigError(f"{env_key}={val!r} is not a valid {caster.__name__}") from exc

        config_kwargs.update(overrides)

        for required in ("project_id", "database_url"):
            if not config_kwargs.get(required):
                raise ReconConfigError(f"Missing required setting {required!r}")

        return cls(**config_kwargs)
