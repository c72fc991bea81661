"""Normalization helpers.

Centralizes defensive parsing and placeholder handling.  Nothing in this
module raises on malformed input: a value that cannot be interpreted
folds to ``None`` so a single bad record never aborts a reconciliation.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any

_logger = logging.getLogger(__name__)

# Method names of structured timestamp objects that convert to a datetime
# (Firestore REST decode, google.protobuf Timestamp).
_STRUCTURED_CONVERTERS = ("to_datetime", "ToDatetime")

# Loose date forms a JavaScript Date also accepts (bare year, "Nov 14 2023").
_LOOSE_FORMATS = (
    "%Y",
    "%Y-%m",
    "%b %d %Y",
    "%B %d %Y",
    "%a %b %d %Y",
    "%b %d %Y %H:%M:%S",
    "%a %b %d %Y %H:%M:%S",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
)


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _from_structured(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return _as_utc(value)

    for name in _STRUCTURED_CONVERTERS:
        converter = getattr(value, name, None)
        if callable(converter):
            try:
                converted = converter()
            except Exception:  # noqa: BLE001 - third-party converters may raise anything
                _logger.debug("Structured timestamp conversion failed", exc_info=True)
                return None
            return _as_utc(converted) if isinstance(converted, datetime) else None

    # Serialized Firestore Timestamp: {"seconds": ..., "nanos": ...} or the
    # admin SDK's {"_seconds": ..., "_nanoseconds": ...}.
    if isinstance(value, Mapping):
        seconds = safe_float(value.get("seconds", value.get("_seconds")))
        if seconds is None:
            return None
        nanos = safe_float(value.get("nanos", value.get("_nanoseconds"))) or 0.0
        return _from_epoch_seconds(seconds + nanos / 1e9)
    return None


def _from_epoch_seconds(seconds: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def _from_epoch_ms(value: Any) -> datetime | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    millis = safe_float(value)
    if millis is None:
        return None
    return _from_epoch_seconds(millis / 1000.0)


def _from_string(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    # RFC 2822, e.g. "Tue, 14 Nov 2023 22:13:20 GMT"
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if isinstance(parsed, datetime):
        return _as_utc(parsed)
    for fmt in _LOOSE_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return None


def parse_instant(value: Any) -> datetime | None:
    """Fold a variant "last updated" value into a UTC datetime.

    Tried in order, each branch independent:

    1. structured timestamp (``datetime``, an object exposing
       ``to_datetime()``/``ToDatetime()``, or a ``{"seconds", "nanos"}``
       mapping),
    2. numeric epoch **milliseconds**,
    3. ISO-8601 or RFC 2822 date string, then a few loose forms
       (bare year, ``"Nov 14 2023"``, ``"11/14/2023"``). Other free-form
       strings a JavaScript ``Date`` would guess at are not accepted.

    Returns ``None`` for absent or unparseable input; never raises.
    """
    if value is None:
        return None
    for branch in (_from_structured, _from_epoch_ms, _from_string):
        parsed = branch(value)
        if parsed is not None:
            return parsed
    return None
