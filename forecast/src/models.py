"""
Pydantic models for plant configuration, coordinates, and forecast aggregates.

The aggregate model uses honest power/energy field names internally. The
legacy variable names exposed to the host ("total earnings today", ...)
live only in the translation table below so existing dashboards keep
working.

CHANGELOG:
- 2026-10-14: Add ForecastVariable and legacy name translation (STORY-006)
- 2026-10-12: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

POWER_PROFILE = "~Power"
"""Presentation profile tag applied to every persisted variable."""

# Fixed enumeration order: position 0..3 on the host.
_LEGACY_NAMES: tuple[tuple[str, str], ...] = (
    ("energy_today_kwh", "total earnings today"),
    ("energy_tomorrow_kwh", "total earnings tomorrow"),
    ("peak_power_today_kw", "max. earnings per hour today"),
    ("peak_power_tomorrow_kw", "max. earnings per hour tomorrow"),
)


def normalize_decimal(value: object) -> str:
    """Return *value* as a string with a decimal comma replaced by a point."""
    return str(value).strip().replace(",", ".")


class PlantConfig(BaseModel):
    """Physical installation parameters required by the estimate endpoint.

    Attributes:
        tilt: Panel declination in degrees (0 = horizontal, 90 = vertical).
        azimuth: Panel orientation in degrees (-180 = north, -90 = east,
            0 = south, 90 = west, 180 = north).
        capacity_kw: Installed module power in kilowatts peak.
    """

    tilt: int
    azimuth: float
    capacity_kw: float

    @property
    def valid(self) -> bool:
        """True only when tilt, azimuth, and capacity are all non-zero."""
        return bool(self.tilt and self.azimuth and self.capacity_kw)


class Coordinates(BaseModel):
    """Geographic location of the plant.

    Values are stored as decimal-point strings so they can be substituted
    into the endpoint path exactly as configured.
    """

    latitude: str
    longitude: str

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _decimal_point(cls, v: object) -> str:
        return normalize_decimal(v)


class ForecastVariable(BaseModel):
    """A single named numeric value to upsert on the host."""

    name: str
    value: float
    position: int
    profile: str = POWER_PROFILE


class ForecastAggregate(BaseModel):
    """The four scalar metrics derived from one estimate payload.

    Energy values are the provider's ``watt_hours_day`` series and power
    values the ``watts`` series, both divided by 1000 at parse time.

    Attributes:
        energy_today_kwh: Largest daily energy value dated today.
        energy_tomorrow_kwh: Largest daily energy value not dated today.
        peak_power_today_kw: Largest instantaneous power value dated today.
        peak_power_tomorrow_kw: Largest instantaneous power value not dated
            today.
    """

    energy_today_kwh: float = Field(default=0.0, ge=0)
    energy_tomorrow_kwh: float = Field(default=0.0, ge=0)
    peak_power_today_kw: float = Field(default=0.0, ge=0)
    peak_power_tomorrow_kw: float = Field(default=0.0, ge=0)

    def as_legacy_dict(self) -> dict[str, float]:
        """Return the aggregate keyed by the legacy host variable names."""
        return {legacy: getattr(self, field) for field, legacy in _LEGACY_NAMES}

    def as_variables(self) -> list[ForecastVariable]:
        """Return the four host variables in their fixed display order."""
        return [
            ForecastVariable(name=legacy, value=getattr(self, field), position=position)
            for position, (field, legacy) in enumerate(_LEGACY_NAMES)
        ]
