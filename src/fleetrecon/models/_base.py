"""Base model for store records.

Every record model inherits from :class:`ReconBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase store keys
  (``linkedUserId``, ``privacyEnabled``) map to snake_case fields.
* A ``model_validator(mode="before")`` that strips placeholder values
  (``""``, ``"--"``, NaN) so the field default is used.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Placeholder strings treated as "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan"})


class ReconBaseModel(BaseModel):
    """Base for records read from the AIS and GPS stores."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original store payload."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_placeholder_values(cls, values: Any) -> Any:
        """Strip placeholder values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        original = dict(values)
        cleaned = ReconBaseModel._clean_dict(original)
        # Keep an explicitly provided raw= (kwargs construction).
        if "raw" not in values:
            cleaned["raw"] = original
        return cleaned
