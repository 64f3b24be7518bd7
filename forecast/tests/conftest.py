"""
Shared test fixtures for forecast poller tests.

Provides environment isolation for ForecastSettings tests and a realistic
two-day estimate payload (2019-06-29 / 2019-06-30).

CHANGELOG:
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

# All ForecastSettings environment variable names, used for cleanup.
_ALL_FORECAST_ENV_VARS = (
    "TILT",
    "AZIMUTH",
    "CAPACITY_KW",
    "LATITUDE",
    "LONGITUDE",
    "API_BASE_URL",
    "REQUEST_TIMEOUT_S",
    "VERIFY_TLS",
    "USER_AGENT",
    "INSTANCE_ID",
    "STORE_PATH",
    "STATUS_PATH",
)

FIXTURE_TODAY = date(2019, 6, 29)

ESTIMATE_CSV = """\
watts.2019-06-29 05:00:00;0
watts.2019-06-29 06:00:00;357
watts.2019-06-29 08:00:00;2260
watts.2019-06-29 10:00:00;4196
watts.2019-06-29 12:00:00;5130
watts.2019-06-29 14:00:00;5292
watts.2019-06-29 16:00:00;4466
watts.2019-06-29 18:00:00;2493
watts.2019-06-29 20:00:00;524
watts.2019-06-29 21:30:00;0
watts.2019-06-30 05:00:00;0
watts.2019-06-30 06:00:00;341
watts.2019-06-30 08:00:00;2154
watts.2019-06-30 10:00:00;4063
watts.2019-06-30 12:00:00;4998
watts.2019-06-30 14:00:00;5189
watts.2019-06-30 16:00:00;4355
watts.2019-06-30 18:00:00;2408
watts.2019-06-30 20:00:00;498
watts.2019-06-30 21:30:00;0
watt_hours.2019-06-29 08:00:00;4722
watt_hours.2019-06-29 12:00:00;23471
watt_hours.2019-06-29 16:00:00;35890
watt_hours.2019-06-29 21:30:00;41524
watt_hours.2019-06-30 08:00:00;4511
watt_hours.2019-06-30 12:00:00;22649
watt_hours.2019-06-30 16:00:00;34777
watt_hours.2019-06-30 21:30:00;40262
watt_hours_day.2019-06-29;41524
watt_hours_day.2019-06-30;40262

"""

EXPECTED_FIXTURE_AGGREGATE = {
    "max. earnings per hour today": 5.292,
    "total earnings today": 41.524,
    "max. earnings per hour tomorrow": 5.189,
    "total earnings tomorrow": 40.262,
}


@pytest.fixture(autouse=True)
def _clean_forecast_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all forecast env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_FORECAST_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set every ForecastSettings environment variable.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "TILT": "35",
        "AZIMUTH": "-45.5",
        "CAPACITY_KW": "9.6",
        "LATITUDE": "52,5200",
        "LONGITUDE": "13,4050",
        "API_BASE_URL": "https://api.example.com/",
        "REQUEST_TIMEOUT_S": "30",
        "VERIFY_TLS": "true",
        "USER_AGENT": "test-agent",
        "INSTANCE_ID": "roof-east",
        "STORE_PATH": "/tmp/test-variables.db",
        "STATUS_PATH": "/tmp/test-status.json",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


def make_host(
    *,
    tilt: object = 25,
    azimuth: object = 10.0,
    capacity_kw: object = 5.9,
    latitude: object = "52.52",
    longitude: object = "13.405",
    instance_id: str = "forecast-test",
) -> MagicMock:
    """Create a mock Host with the given properties and location."""
    properties = {"tilt": tilt, "azimuth": azimuth, "capacity_kw": capacity_kw}
    host = MagicMock()
    host.instance_id = instance_id
    host.read_property = MagicMock(side_effect=properties.__getitem__)
    host.resolve_location = MagicMock(return_value=(latitude, longitude))
    host.upsert_variable = AsyncMock()
    host.set_timer_interval = MagicMock()
    host.set_status = MagicMock()
    return host


@pytest.fixture()
def host() -> MagicMock:
    """A mock Host with a valid configuration and location."""
    return make_host()


@pytest.fixture()
def host_factory() -> object:
    """Return :func:`make_host` for tests that need a custom configuration."""
    return make_host


@pytest.fixture()
def estimate_csv() -> str:
    """The two-day estimate payload."""
    return ESTIMATE_CSV


@pytest.fixture()
def fixture_today() -> date:
    """The date treated as "today" for :func:`estimate_csv`."""
    return FIXTURE_TODAY


@pytest.fixture()
def expected_fixture_aggregate() -> dict[str, float]:
    """Legacy-named aggregate expected for :func:`estimate_csv` on FIXTURE_TODAY."""
    return dict(EXPECTED_FIXTURE_AGGREGATE)
