"""
Estimate fetcher for the Forecast.Solar public API.

Builds the estimate endpoint from the plant configuration and the host's
location, performs a single HTTPS GET, classifies the outcome into an
instance status, and re-arms the update timer for the next wall-clock hour.

Outcome classification:
- 200 with a ``watt_hours_day`` marker in the body: ACTIVE, body returned.
- 429: RATE_LIMITED, nothing returned.
- anything else (other status, empty body, missing marker, transport
  error): FETCH_ERROR, nothing returned.

Every outcome except a missing location re-arms the timer for 5 seconds
past the next hour, so a failed cycle is retried on the next hour.
No exception propagates to the caller.

CHANGELOG:
- 2026-10-18: Failure log counts response bytes; defaults from config (STORY-013)
- 2026-10-16: Reschedule on generic fetch errors as well (STORY-010)
- 2026-10-15: Initial creation, adapted from the batch uploader (STORY-009)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

import httpx

from forecast.src.config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_REQUEST_TIMEOUT_S,
    DEFAULT_USER_AGENT,
)
from forecast.src.models import Coordinates, PlantConfig
from forecast.src.schedule import next_poll_delay
from forecast.src.status import InstanceStatus

if TYPE_CHECKING:
    from forecast.src.host import Host

logger = logging.getLogger(__name__)

SUCCESS_MARKER = "watt_hours_day"
"""Substring that must appear in a valid estimate body."""


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _path_number(value: float | int) -> str:
    """Format a number for the endpoint path (``90.0`` -> ``90``, ``5.9`` -> ``5.9``)."""
    number = float(value)
    return str(int(number)) if number.is_integer() else str(number)


def build_endpoint(base_url: str, coordinates: Coordinates, config: PlantConfig) -> str:
    """Return ``{base}/estimate/{lat}/{lon}/{tilt}/{azimuth}/{capacity_kw}``."""
    return "/".join(
        (
            base_url.rstrip("/"),
            "estimate",
            coordinates.latitude,
            coordinates.longitude,
            str(config.tilt),
            _path_number(config.azimuth),
            _path_number(config.capacity_kw),
        )
    )


class EstimateFetcher:
    """Fetches the estimate payload and drives status and timer on the host.

    Args:
        host: Host used for the location, status and timer.
        base_url: API base URL. Must start with ``https://``.
        timeout_s: Request timeout in seconds.
        verify_tls: Verify the server certificate.
        user_agent: User-Agent header value.
        clock: Returns the current time; used for the reschedule.

    Raises:
        ValueError: If *base_url* does not start with ``https://``.
    """

    def __init__(
        self,
        host: Host,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S,
        verify_tls: bool = False,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        if not base_url.lower().startswith("https://"):
            raise ValueError(f"Forecast API base URL must use HTTPS (got: '{base_url}').")
        self._host = host
        self._base_url = base_url
        self._timeout_s = timeout_s
        self._verify_tls = verify_tls
        self._user_agent = user_agent
        self._clock = clock
        if not verify_tls:
            logger.warning("TLS certificate verification is disabled for %s", base_url)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_coordinates(self) -> Coordinates | None:
        """Return the plant coordinates, or None if either is unavailable."""
        latitude, longitude = self._host.resolve_location()
        if not latitude or not longitude:
            return None
        return Coordinates(latitude=latitude, longitude=longitude)

    async def fetch(self, config: PlantConfig) -> str | None:
        """Fetch the raw estimate payload for *config*.

        Returns:
            The response body on success, ``None`` on any failure. The
            host status reflects the outcome.
        """
        coordinates = self.resolve_coordinates()
        if coordinates is None:
            logger.warning("Plant location unavailable, skipping estimate request")
            self._host.set_status(InstanceStatus.LOCATION_MISSING)
            return None

        endpoint = build_endpoint(self._base_url, coordinates, config)
        logger.info("Endpoint: %s", endpoint)

        try:
            async with httpx.AsyncClient(
                verify=self._verify_tls,
                timeout=self._timeout_s,
            ) as client:
                response = await client.get(
                    endpoint,
                    headers={
                        "Content-Type": "text/csv",
                        "Accept": "text/csv",
                        "User-Agent": self._user_agent,
                    },
                )
        except httpx.HTTPError as exc:
            logger.warning("Estimate request failed (network error): %s", exc)
            self._fail(InstanceStatus.FETCH_ERROR)
            return None

        body = response.text
        logger.debug("Estimate response (HTTP %d): %s", response.status_code, body)

        if response.status_code == 200 and body and SUCCESS_MARKER in body:
            self._host.set_status(InstanceStatus.ACTIVE)
            self._reschedule()
            return body

        if response.status_code == 429:
            logger.warning("Estimate request rate limited (HTTP 429), retrying next hour")
            self._fail(InstanceStatus.RATE_LIMITED)
            return None

        logger.warning(
            "Estimate request failed (HTTP %d, %d bytes, marker %s)",
            response.status_code,
            len(response.content),
            "present" if SUCCESS_MARKER in body else "missing",
        )
        self._fail(InstanceStatus.FETCH_ERROR)
        return None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _fail(self, status: InstanceStatus) -> None:
        self._host.set_status(status)
        self._reschedule()

    def _reschedule(self) -> None:
        """Arm the host timer for 5 seconds past the next hour."""
        self._host.set_timer_interval(next_poll_delay(self._clock()))
