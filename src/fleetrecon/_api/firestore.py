"""AIS collection reads via the Firestore REST API.

Firestore documents arrive as typed-value maps
(``{"doubleValue": 1.5}``, ``{"timestampValue": "2024-..Z"}``, ...).
They are decoded into plain Python here so the models never see the
wire encoding.  ``timestampValue`` becomes a :class:`FirestoreTimestamp`
so it flows through the structured branch of
:func:`fleetrecon.ingestion.normalize.parse_instant`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from fleetrecon._transport import Transport
from fleetrecon.config import ReconConfig
from fleetrecon.exceptions import ReconTransportError
from fleetrecon.models.ais import AisRecord

_logger = logging.getLogger(__name__)

_FRACTION_RE = re.compile(r"\.(\d+)")


@dataclass(frozen=True)
class FirestoreTimestamp:
    """RFC 3339 ``timestampValue`` kept unparsed until conversion is requested."""

    value: str

    def to_datetime(self) -> datetime:
        """Convert to an aware UTC datetime.

        Raises :class:`ValueError` when the wire value is malformed.
        Firestore sends up to nanosecond precision; digits past
        microseconds are truncated.
        """
        text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6], self.value.strip(), count=1)
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed


def decode_value(value: Any) -> Any:
    """Decode one Firestore typed value into plain Python."""
    if not isinstance(value, dict) or not value:
        return None
    kind, inner = next(iter(value.items()))
    if kind == "nullValue":
        return None
    if kind in ("stringValue", "booleanValue", "doubleValue", "referenceValue", "bytesValue"):
        return inner
    if kind == "integerValue":
        try:
            return int(inner)
        except (TypeError, ValueError):
            return None
    if kind == "timestampValue":
        return FirestoreTimestamp(str(inner))
    if kind == "geoPointValue" and isinstance(inner, dict):
        return {"latitude": inner.get("latitude"), "longitude": inner.get("longitude")}
    if kind == "mapValue" and isinstance(inner, dict):
        return decode_fields(inner.get("fields"))
    if kind == "arrayValue" and isinstance(inner, dict):
        values = inner.get("values")
        return [decode_value(item) for item in values] if isinstance(values, list) else []
    _logger.debug("Unsupported Firestore value kind %s", kind)
    return None


def decode_fields(fields: Any) -> dict[str, Any]:
    if not isinstance(fields, dict):
        return {}
    return {key: decode_value(value) for key, value in fields.items()}


def parse_document(document: dict[str, Any]) -> AisRecord | None:
    """Build an :class:`AisRecord` from a Firestore REST document.

    Returns ``None`` for a document that fails model validation; the
    record is skipped rather than failing the whole read.
    """
    data = decode_fields(document.get("fields"))
    name = document.get("name")
    if isinstance(name, str) and name:
        data.setdefault("documentId", name.rsplit("/", 1)[-1])
    try:
        return AisRecord.model_validate(data)
    except ValidationError:
        _logger.debug("Skipping malformed AIS document %s", name, exc_info=True)
        return None


def _auth_headers(config: ReconConfig) -> dict[str, str]:
    if config.auth_token:
        return {"authorization": f"Bearer {config.auth_token}"}
    return {}


async def fetch_ais_records(config: ReconConfig, transport: Transport) -> list[AisRecord]:
    """Read the whole AIS collection, following ``nextPageToken`` pages."""
    url = config.ais_collection_url
    headers = _auth_headers(config)
    records: list[AisRecord] = []
    page_token: str | None = None
    pages = 0

    while True:
        params = {"pageSize": str(config.page_size)}
        if page_token:
            params["pageToken"] = page_token
        response = await transport.get_json(url, params=params, headers=headers)
        if response is None:
            break
        if not isinstance(response, dict):
            raise ReconTransportError(f"Unexpected response shape from {url}: {type(response).__name__}", endpoint=url)

        pages += 1
        documents = response.get("documents")
        for document in documents if isinstance(documents, list) else []:
            if not isinstance(document, dict):
                continue
            record = parse_document(document)
            if record is not None:
                records.append(record)

        next_token = response.get("nextPageToken")
        if not isinstance(next_token, str) or not next_token:
            break
        page_token = next_token

    _logger.debug("Fetched %d AIS documents in %d page(s)", len(records), pages)
    return records
