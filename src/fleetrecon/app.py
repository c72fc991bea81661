"""Process-wide client registry.

Call :func:`ensure_initialized` once at startup; everything else in the
process then shares the same :class:`FleetReconClient` via
:func:`get_client`.
"""

from __future__ import annotations

import logging

from fleetrecon.client import FleetReconClient
from fleetrecon.config import ReconConfig
from fleetrecon.exceptions import ReconConfigError

_logger = logging.getLogger(__name__)

_default_client: FleetReconClient | None = None


async def ensure_initialized(config: ReconConfig | None = None) -> FleetReconClient:
    """Create and initialize the process-wide client if none exists.

    Subsequent calls return the existing client unchanged.  *config*
    defaults to :meth:`ReconConfig.from_env` on the first call.
    """
    global _default_client
    if _default_client is not None:
        if config is not None and config != _default_client.config:
            _logger.debug("ensure_initialized called with a different config; keeping the existing client")
        return _default_client

    client = FleetReconClient(config if config is not None else ReconConfig.from_env())
    await client.ensure_initialized()
    _default_client = client
    return client


def get_client() -> FleetReconClient:
    if _default_client is None:
        raise ReconConfigError("fleetrecon is not initialized; call ensure_initialized() at startup")
    return _default_client


async def shutdown() -> None:
    """Close and forget the process-wide client."""
    global _default_client
    client = _default_client
    _default_client = None
    if client is not None:
        await client.close()
