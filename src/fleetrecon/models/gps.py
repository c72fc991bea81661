"""Self-reported GPS position model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from fleetrecon.ingestion.normalize import safe_float
from fleetrecon.models._base import ReconBaseModel


class GpsRecord(ReconBaseModel):
    """One entry of the GPS position tree, keyed externally by user id.

    Numeric fields are ``None`` when the value is absent or unparseable.

    Parameters
    ----------
    latitude : float or None
        Latitude in degrees.
    longitude : float or None
        Longitude in degrees.
    privacy_enabled : bool
        ``True`` only when the store holds a literal boolean ``true``.
        Opted-out users are excluded from every reconciled view.
    raw : dict
        Full store payload.
    """

    latitude: float | None = Field(default=None, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float | None = Field(
        default=None,
        validation_alias=AliasChoices("longitude", "lng", "lon"),
    )
    privacy_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("privacyEnabled", "privacy_enabled"),
    )

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("privacy_enabled", mode="before")
    @classmethod
    def _strict_privacy(cls, value: Any) -> bool:
        return value is True

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None
