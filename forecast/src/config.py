"""
Forecast poller configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
The three plant properties (tilt, azimuth, capacity) are read through the
host interface by :func:`read_config` on every cycle so a running instance
picks up changed values.

CHANGELOG:
- 2026-10-18: read_config() reads missing or non-numeric properties as 0 (STORY-013)
- 2026-10-15: Add read_config() host-backed plant config reader (STORY-003)
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from pydantic import field_validator
from pydantic_settings import BaseSettings

from forecast.src.models import PlantConfig

if TYPE_CHECKING:
    from forecast.src.host import Host

DEFAULT_API_BASE_URL = "https://api.forecast.solar"
DEFAULT_REQUEST_TIMEOUT_S = 60.0
DEFAULT_USER_AGENT = "forecast-solar-edge"


class ForecastSettings(BaseSettings):
    """Forecast poller configuration.

    All values are loaded from environment variables or a ``.env`` file and
    every value has a default, so the daemon starts without any setup.

    Attributes:
        tilt: Panel declination in degrees, 0-90 (default 25).
        azimuth: Panel azimuth in degrees, -180-180 (default 0 = south).
        capacity_kw: Installed module power in kWp (default 5.9).
        latitude: Plant latitude. Decimal commas are accepted.
        longitude: Plant longitude. Decimal commas are accepted.
        api_base_url: Forecast.Solar API base URL (must be HTTPS).
        request_timeout_s: Timeout for the estimate request in seconds.
        verify_tls: Verify the API's TLS certificate.
        user_agent: User-Agent header sent with the estimate request.
        instance_id: Owning instance identifier for persisted variables.
        store_path: SQLite file holding the persisted variables.
        status_path: JSON status file path.
    """

    tilt: int = 25
    azimuth: float = 0
    capacity_kw: float = 5.9
    latitude: str | None = None
    longitude: str | None = None
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    verify_tls: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    instance_id: str = "forecast-solar"
    store_path: str = "/data/variables.db"
    status_path: str = "/data/status.json"

    @field_validator("tilt")
    @classmethod
    def tilt_must_be_valid(cls, v: int) -> int:
        """Validate tilt is between 0 and 90 degrees."""
        if v < 0 or v > 90:
            raise ValueError("TILT must be between 0 and 90")
        return v

    @field_validator("azimuth")
    @classmethod
    def azimuth_must_be_valid(cls, v: float) -> float:
        """Validate azimuth is between -180 and 180 degrees."""
        if v < -180 or v > 180:
            raise ValueError("AZIMUTH must be between -180 and 180")
        return v

    @field_validator("capacity_kw")
    @classmethod
    def capacity_must_be_non_negative(cls, v: float) -> float:
        """Validate installed capacity is non-negative."""
        if v < 0:
            raise ValueError("CAPACITY_KW must be >= 0")
        return v

    @field_validator("api_base_url")
    @classmethod
    def api_base_url_must_be_https(cls, v: str) -> str:
        """Validate that the API base URL uses HTTPS and drop a trailing slash."""
        if not v.lower().startswith("https://"):
            raise ValueError(f"API_BASE_URL must use HTTPS (got: '{v[:20]}...').")
        return v.rstrip("/")

    @field_validator("request_timeout_s")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        """Validate request timeout is positive."""
        if v <= 0:
            raise ValueError("REQUEST_TIMEOUT_S must be > 0")
        return v

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def read_config(host: Host) -> PlantConfig:
    """Read the plant properties through the host.

    Never raises for missing, empty, or non-numeric values: they read as 0
    and make the config invalid. The caller checks ``config.valid``.

    Args:
        host: Host providing the ``tilt``, ``azimuth`` and ``capacity_kw``
            properties.

    Returns:
        The plant configuration for this cycle.
    """
    return PlantConfig(
        tilt=int(_as_number(host.read_property("tilt"))),
        azimuth=_as_number(host.read_property("azimuth")),
        capacity_kw=_as_number(host.read_property("capacity_kw")),
    )


def _as_number(value: object) -> float:
    """Return *value* as a float; None, empty, or non-numeric values become 0."""
    if value is None:
        return 0.0
    try:
        number = float(str(value).strip().replace(",", "."))
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0
