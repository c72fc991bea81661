"""GPS tree and feed-flag access via the Realtime Database REST API."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from pydantic import ValidationError

from fleetrecon._constants import (
    STREAM_EVENT_AUTH_REVOKED,
    STREAM_EVENT_CANCEL,
    STREAM_EVENT_KEEP_ALIVE,
    STREAM_EVENT_PATCH,
    STREAM_EVENT_PUT,
)
from fleetrecon._transport import Transport
from fleetrecon.config import ReconConfig
from fleetrecon.exceptions import PermissionDeniedError
from fleetrecon.models.gps import GpsRecord

_logger = logging.getLogger(__name__)


def _auth_params(config: ReconConfig) -> dict[str, str]:
    if config.auth_token:
        return {"auth": config.auth_token}
    return {}


def _flag_value(data: Any) -> bool:
    """A missing or non-boolean flag reads as ``False``."""
    return data is True


def parse_gps_tree(tree: Any) -> dict[str, GpsRecord]:
    """Convert the raw position tree into records keyed by user id.

    Entries that are not objects (``null``, scalars) or fail validation
    are skipped.  The database returns sequential numeric keys as a JSON
    array; those are keyed by their index.
    """
    if isinstance(tree, list):
        items: list[tuple[str, Any]] = [(str(index), entry) for index, entry in enumerate(tree)]
    elif isinstance(tree, dict):
        items = [(str(key), entry) for key, entry in tree.items()]
    else:
        return {}

    records: dict[str, GpsRecord] = {}
    for user_id, entry in items:
        if not isinstance(entry, dict):
            continue
        try:
            records[user_id] = GpsRecord.model_validate(entry)
        except ValidationError:
            _logger.debug("Skipping malformed GPS entry for %s", user_id, exc_info=True)
    return records


async def fetch_gps_records(config: ReconConfig, transport: Transport) -> dict[str, GpsRecord]:
    """Read the whole GPS position tree.  A missing path reads as empty."""
    url = config.database_path_url(config.gps_path)
    tree = await transport.get_json(url, params=_auth_params(config))
    records = parse_gps_tree(tree)
    _logger.debug("Fetched %d GPS entries", len(records))
    return records


async def read_flag(config: ReconConfig, transport: Transport) -> bool:
    """Read the feed flag once."""
    url = config.database_path_url(config.feed_flag_path)
    return _flag_value(await transport.get_json(url, params=_auth_params(config)))


async def write_flag(config: ReconConfig, transport: Transport, value: bool) -> bool:
    """Overwrite the feed flag and return the value the server echoed."""
    url = config.database_path_url(config.feed_flag_path)
    echoed = await transport.put_json(url, bool(value), params=_auth_params(config))
    return _flag_value(echoed)


async def watch_flag(config: ReconConfig, transport: Transport) -> AsyncIterator[bool]:
    """Yield the feed flag value on subscription and on every change.

    Raises
    ------
    PermissionDeniedError
        When the server cancels the stream or revokes its auth.
    ReconTransportError
        On connection or HTTP failure.
    """
    url = config.database_path_url(config.feed_flag_path)
    async for event in transport.stream_events(url, params=_auth_params(config)):
        if event.event == STREAM_EVENT_KEEP_ALIVE:
            continue
        if event.event in (STREAM_EVENT_CANCEL, STREAM_EVENT_AUTH_REVOKED):
            raise PermissionDeniedError(f"Flag stream closed by server: {event.event}", endpoint=url)
        if event.event not in (STREAM_EVENT_PUT, STREAM_EVENT_PATCH):
            _logger.debug("Ignoring flag stream event %s", event.event)
            continue

        payload = event.data if isinstance(event.data, dict) else {}
        # The flag is a leaf; only writes at the listened path carry its value.
        if payload.get("path", "/") != "/":
            continue
        yield _flag_value(payload.get("data"))
    _logger.debug("Flag stream ended for %s", url)
