"""AIS broadcast-position record model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from fleetrecon.ingestion.normalize import safe_float, safe_str
from fleetrecon.models._base import ReconBaseModel


class AisRecord(ReconBaseModel):
    """One document from the AIS collection.

    Parameters
    ----------
    document_id : str or None
        Store document id (usually the MMSI).  Informational only.
    latitude : float or None
        Latitude in degrees; ``None`` means position unknown.
    longitude : float or None
        Longitude in degrees; ``None`` means position unknown.
    last_updated : Any
        Last-update value in whichever encoding the store holds it
        (structured timestamp, epoch milliseconds, or date string).
        Interpreted by :func:`fleetrecon.ingestion.normalize.parse_instant`.
    linked_user_id : str or None
        GPS-side user this contact was linked to upstream.  Trusted as-is.
    raw : dict
        Full store payload.
    """

    document_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    last_updated: Any = Field(default=None)
    linked_user_id: str | None = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("document_id", "linked_user_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> str | None:
        return safe_str(value)

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None
